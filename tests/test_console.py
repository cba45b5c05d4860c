import io

from port_checker.core.liveness import ProbeResult
from port_checker.core.port_probe import PortReport
from port_checker.core.process_lookup import BoundProcess
from port_checker.core.service_detection import ServiceIdentification, ServiceKind
from port_checker.output.console import ConsoleFormatter, ReportPrinter


class TTYBuffer(io.StringIO):
    def isatty(self):
        return True


def _render(report):
    stream = io.StringIO()
    ReportPrinter(ConsoleFormatter(stream)).print_report(report)
    return stream.getvalue()


def _open_report(**kwargs):
    web = ServiceIdentification(ServiceKind.HTTP, status="200 OK")
    fields = dict(port=80, status=ProbeResult.OPEN, web_result=web, protocol=web)
    fields.update(kwargs)
    return PortReport(**fields)


def test_closed_port():
    out = _render(PortReport(port=9999, status=ProbeResult.CLOSED))
    assert out.strip() == "[✗] Port 9999 is closed."


def test_open_http_port_with_process():
    out = _render(_open_report(process=BoundProcess("python3", 42, "127.0.0.1:80")))

    assert "Port 80 is OPEN" in out
    assert "HTTP(S) Response:" in out
    assert "    Status: 200 OK" in out
    assert "python3 (pid: 42)" in out
    assert "Listening on 127.0.0.1:80" in out
    assert "    Protocol: HTTP" in out
    assert "    PID: 42" in out
    assert out.rstrip().endswith("Status: Open")


def test_unresolved_process_suggests_sudo():
    out = _render(_open_report(process_error="hidden"))
    assert "Unable to determine bound process. Try running:" in out
    assert "sudo port-checker 80" in out
    assert "PID:" not in out


def test_both_web_probes_failed():
    banner = ServiceIdentification(ServiceKind.MYSQL, version="8.0.31")
    out = _render(_open_report(web_result=None, banner_result=banner, protocol=banner))
    assert "Both HTTP and HTTPS failed" in out
    assert "Protocol: MySQL (version: 8.0.31)" in out


def test_handshake_failed():
    web = ServiceIdentification(ServiceKind.HTTPS_HANDSHAKE_FAILED)
    out = _render(_open_report(web_result=web, protocol=web))
    assert "Protocol: HTTPS (handshake failed)" in out


def test_no_colors_when_not_a_tty():
    assert "\x1b[" not in _render(_open_report())


def test_colors_on_tty():
    stream = TTYBuffer()
    ReportPrinter(ConsoleFormatter(stream)).print_report(_open_report())
    assert "\x1b[" in stream.getvalue()


def test_colors_can_be_disabled_on_tty():
    stream = TTYBuffer()
    ReportPrinter(ConsoleFormatter(stream, colors_enabled=False)).print_report(_open_report())
    assert "\x1b[" not in stream.getvalue()


def test_box_fits_text():
    lines = ConsoleFormatter(io.StringIO()).box("Port 8080 is OPEN", "").splitlines()
    assert len({len(line) for line in lines}) == 1
