import pytest

from application.services.account_registry import PurchaseAccountRegistry
from infrastructure.adapters.credentials import StaticCredentialProvider


class _ClosingGateway:
    def __init__(self, credentials):
        self.credential = credentials.current_credential()
        self.closed = False

    async def aclose(self):
        self.closed = True


@pytest.fixture
def gateways():
    return []


@pytest.fixture
def make_registry(gateways):
    def factory(**kwargs):
        def gateway_factory(credentials):
            gateway = _ClosingGateway(credentials)
            gateways.append(gateway)
            return gateway

        return PurchaseAccountRegistry(gateway_factory, **kwargs)

    return factory


@pytest.mark.asyncio
async def test_same_credential_reuses_account(make_registry):
    registry = make_registry(max_accounts=4)
    first = await registry.account_for(StaticCredentialProvider("tok"))
    again = await registry.account_for(StaticCredentialProvider("tok"))
    assert again is first
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_lookup_never_creates(make_registry, gateways):
    registry = make_registry(max_accounts=4)
    assert registry.get(StaticCredentialProvider("junk")) is None
    assert len(registry) == 0
    assert gateways == []


@pytest.mark.asyncio
async def test_distinct_credentials_are_bounded_and_evicted_lru_first(make_registry, gateways):
    registry = make_registry(max_accounts=3, idle_ttl_seconds=0)

    for n in range(50):
        await registry.account_for(StaticCredentialProvider(f"junk-{n}"))

    assert len(registry) == 3
    assert [g.credential for g in gateways if not g.closed] == ["junk-47", "junk-48", "junk-49"]
    assert all(g.closed for g in gateways[:47])


@pytest.mark.asyncio
async def test_recent_use_protects_from_eviction(make_registry):
    registry = make_registry(max_accounts=2, idle_ttl_seconds=0)
    kept = await registry.account_for(StaticCredentialProvider("a"))
    await registry.account_for(StaticCredentialProvider("b"))
    assert registry.get(StaticCredentialProvider("a")) is kept

    await registry.account_for(StaticCredentialProvider("c"))

    assert registry.get(StaticCredentialProvider("a")) is kept
    assert registry.get(StaticCredentialProvider("b")) is None


@pytest.mark.asyncio
async def test_idle_accounts_are_evicted_and_closed(make_registry, gateways):
    registry = make_registry(max_accounts=10, idle_ttl_seconds=60)
    idle = await registry.account_for(StaticCredentialProvider("idle"))
    idle.last_used -= 120

    await registry.account_for(StaticCredentialProvider("fresh"))

    assert registry.get(StaticCredentialProvider("idle")) is None
    assert idle.reconciler.closed
    assert gateways[0].closed is True
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_aclose_releases_everything(make_registry, gateways):
    registry = make_registry(max_accounts=10)
    await registry.account_for(StaticCredentialProvider(None))
    await registry.account_for(StaticCredentialProvider("tok"))

    await registry.aclose()

    assert len(registry) == 0
    assert all(g.closed for g in gateways)
