from redmineinstaller.services.passwords import ALPHABET, PasswordService


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, message, *args):
        self.warnings.append(message % args if args else message)


class FakeResponse:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        return None


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, text=None, fail=False):
        self.text = text
        self.fail = fail
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.fail:
            raise self.RequestException("connection refused")
        return FakeResponse(self.text)


def test_remote_password_is_used_when_plausible():
    requests_module = FakeRequestsModule(text="ab123cd4e567fg8h9ij0\n")
    service = PasswordService(logger=DummyLogger(), requests_module=requests_module)

    assert service.generate() == "ab123cd4e567fg8h9ij0"
    url, kwargs = requests_module.calls[0]
    assert url == "https://www.passwordrandom.com/query"
    assert kwargs["params"]["scheme"] == "rrnnnrrnrnnnrrnrnnrr"


def test_remote_failure_falls_back_to_local_generation():
    logger = DummyLogger()
    service = PasswordService(logger=logger, requests_module=FakeRequestsModule(fail=True))

    password = service.generate()

    assert len(password) == 20
    assert all(char in ALPHABET for char in password)
    assert logger.warnings


def test_implausible_remote_value_is_rejected():
    service = PasswordService(
        logger=DummyLogger(),
        requests_module=FakeRequestsModule(text="<html>rate limited</html>"),
    )

    assert service.fetch_remote() is None


def test_local_source_never_calls_network():
    requests_module = FakeRequestsModule(text="unused")
    service = PasswordService(logger=DummyLogger(), source="local", requests_module=requests_module)

    first = service.generate()
    second = service.generate()

    assert requests_module.calls == []
    assert first != second
