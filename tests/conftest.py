"""Shared fixtures: sample markup of the library pages."""
import pytest

OVERVIEW_URL = 'https://bib.example.org/standorte/freie-sitzplaetze/'
A3_URL = 'https://bib.example.org/standorte/bb-a3/'
A5_URL = 'https://bib.example.org/standorte/bb-a5/'

OVERVIEW_HTML = """
<html>
    <body>
        <div class="available-seats-table">
            <p>Freie Arbeitsplätze in den Bibliotheksbereichen</p>
            <p>Stand: 02.04.25, 10:30 Uhr</p>
            <table>
                <tbody>
                    <tr>
                        <td title="42 % von 360 Arbeitsplätzen sind belegt">
                            <div class="available-seats-table-status">image/svg+xml 42 %</div>
                        </td>
                        <td>
                            <a href="/standorte/bb-a3/">Bibliotheksbereich A3</a>
                            <div><p>Ebene 1 bis 3</p></div>
                        </td>
                    </tr>
                    <tr>
                        <td title="95&nbsp;% von 200 Arbeitsplätzen sind belegt">
                            <div class="available-seats-table-status">95 %</div>
                        </td>
                        <td>
                            <a href="/standorte/bb-a5/">Bibliotheksbereich A5</a>
                        </td>
                    </tr>
                    <tr>
                        <td title="Belegt: 17 %">
                            <div class="available-seats-table-status">17 %</div>
                        </td>
                        <td>
                            <a href="/standorte/bb-schloss-ehrenhof/">Schloss Ehrenhof</a>
                        </td>
                    </tr>
                </tbody>
            </table>
        </div>
    </body>
</html>
"""

LOCATION_HTML = """
<html>
    <body>
        <div id="c28012" class="content-type-textmedia">
            <h2>Öffnungszeiten</h2>
            <table class="contenttable">
                <tbody>
                    <tr><td>Mo - Fr</td><td>08:00 - 24:00 Uhr</td></tr>
                    <tr><td>Sa - So</td><td>09:00 - 24:00 Uhr</td></tr>
                    <tr><td>Feiertage</td></tr>
                </tbody>
            </table>
        </div>
        <div id="c375632">
            <div class="icon-box-text">
                <p>Eingang über den Ehrenhof.</p>
                <a href="/info/">Weitere Infos</a>
            </div>
        </div>
    </body>
</html>
"""


@pytest.fixture
def overview_html():
    return OVERVIEW_HTML


@pytest.fixture
def location_html():
    return LOCATION_HTML
