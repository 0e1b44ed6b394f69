import pytest
from rich.console import Console

from mssqlmcpinstaller.errors import DownloadFailureError, InstallerError
from mssqlmcpinstaller.services.download import DownloadService
from mssqlmcpinstaller.services.validation import ValidationService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeResponse:
    def __init__(self, payload: bytes):
        self.payload = payload
        self.headers = {"Content-Length": str(len(payload))}

    def raise_for_status(self):
        return None

    def iter_content(self, chunk_size=8192):
        yield self.payload

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, payload: bytes):
        self.payload = payload
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return FakeResponse(self.payload)


class FlakyRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, payload: bytes, failures: int = 1):
        self.payload = payload
        self.failures = failures
        self.calls = 0

    def get(self, *_args, **_kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.RequestException("temporary download error")
        return FakeResponse(self.payload)


def _service(requests_module, **kwargs):
    return DownloadService(
        validation_service=ValidationService(),
        logger=DummyLogger(),
        console=Console(record=True),
        requests_module=requests_module,
        **kwargs,
    )


def test_download_file_writes_payload_and_returns_size(tmp_path):
    requests_module = FakeRequestsModule(payload=b"export const x = 1;\n")
    service = _service(requests_module, timeout=12.5)

    dest = tmp_path / "src" / "index.ts"
    written = service.download_file("https://example.com/index.ts", str(dest))

    assert written == len(b"export const x = 1;\n")
    assert dest.read_bytes() == b"export const x = 1;\n"
    assert requests_module.calls[0][1]["timeout"] == 12.5


def test_download_service_retries_transient_request_errors(tmp_path):
    requests_module = FlakyRequestsModule(payload=b"retried")
    service = _service(requests_module, retry_count=1, retry_backoff_seconds=0.0)

    dest = tmp_path / "index.ts"
    service.download_file("https://example.com/index.ts", str(dest), description="patch")

    assert requests_module.calls == 2
    assert dest.read_bytes() == b"retried"


def test_download_service_raises_download_failure_after_retries(tmp_path):
    requests_module = FlakyRequestsModule(payload=b"never", failures=5)
    service = _service(requests_module, retry_count=1, retry_backoff_seconds=0.0)

    with pytest.raises(DownloadFailureError, match="temporary download error"):
        service.download_file("https://example.com/index.ts", str(tmp_path / "index.ts"))

    assert requests_module.calls == 2


def test_download_service_rejects_plain_http(tmp_path):
    requests_module = FakeRequestsModule(payload=b"unused")
    service = _service(requests_module)

    with pytest.raises(InstallerError, match="insecure HTTP"):
        service.download_file("http://example.com/index.ts", str(tmp_path / "index.ts"))

    assert requests_module.calls == []
