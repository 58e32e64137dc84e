import pytest


class FakeOscClient:
    """Stands in for pythonosc SimpleUDPClient; records sent contents"""

    def __init__(self, host, port, fail=False):
        self.host = host
        self.port = port
        self.fail = fail
        self.sent = []
        self.closed = False

    def send(self, content):
        if self.fail:
            raise OSError(f"network unreachable: {self.host}")
        self.sent.append(content)

    def close(self):
        self.closed = True


class FakeClientFactory:
    def __init__(self, failing_hosts=()):
        self.failing_hosts = set(failing_hosts)
        self.clients = {}

    def __call__(self, host, port):
        client = FakeOscClient(host, port, fail=host in self.failing_hosts)
        self.clients[host] = client
        return client


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def make_client_factory():
    return FakeClientFactory
