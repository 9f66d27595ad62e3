from datetime import datetime, timedelta

import pytest

from bid_scraper.config import Config, DatabaseConfig
from bid_scraper.database.connection import create_database_engine, create_session_factory
from bid_scraper.database.repositories import (
    BidRepository,
    CredentialRepository,
    InMemoryBidStore,
    InMemoryCredentialStore,
    create_stores,
)
from bid_scraper.scrapers.exceptions import StoreUnavailable, ValidationError
from bid_scraper.scrapers.models import Credential, PortalType
from bid_scraper.scrapers.orchestrator import start_of_today

from conftest import make_bid

UNREACHABLE_URL = "sqlite:////nonexistent-bid-scraper-dir/nested/bids.db"


@pytest.fixture
def stores(config):
    return create_stores(config)


class TestCreateStores:

    def test_reachable_database_gives_durable_stores(self, stores):
        bid_store, credential_store = stores

        assert isinstance(bid_store, BidRepository)
        assert isinstance(credential_store, CredentialRepository)

    def test_unreachable_database_falls_back_to_memory(self):
        config = Config(database=DatabaseConfig(url=UNREACHABLE_URL, fallback_to_memory=True))

        bid_store, credential_store = create_stores(config)

        assert isinstance(bid_store, InMemoryBidStore)
        assert isinstance(credential_store, InMemoryCredentialStore)

    def test_unreachable_database_without_fallback(self):
        config = Config(database=DatabaseConfig(url=UNREACHABLE_URL, fallback_to_memory=False))

        with pytest.raises(ConnectionError):
            create_stores(config)


class TestBidRepository:

    def test_insert_and_exists(self, stores):
        bid_store, _ = stores
        bid = make_bid("metro_abc", documents=["https://x.example/a.pdf"], bid_link="https://x.example/a.pdf")

        assert not bid_store.exists_by_id("metro_abc")
        bid_store.insert(bid)

        assert bid_store.exists_by_id("metro_abc")
        stored = bid_store.list_recent()[0]
        assert stored.id == "metro_abc"
        assert stored.documents == ["https://x.example/a.pdf"]
        assert stored.bid_link == "https://x.example/a.pdf"

    def test_count_since(self, stores):
        bid_store, _ = stores
        bid_store.insert(make_bid("a"))
        bid_store.insert(make_bid("b"))

        assert bid_store.count_since(start_of_today()) == 2
        assert bid_store.count_since(datetime.now() + timedelta(minutes=5)) == 0

    def test_list_recent_orders_by_posted_date(self, stores):
        bid_store, _ = stores
        now = datetime.now()
        bid_store.insert(make_bid("older", posted_date=now - timedelta(hours=2)))
        bid_store.insert(make_bid("newer", posted_date=now))

        assert [bid.id for bid in bid_store.list_recent(limit=1)] == ["newer"]
        assert [bid.id for bid in bid_store.list_recent()] == ["newer", "older"]

    def test_unreachable_database_raises_store_unavailable(self):
        engine = create_database_engine(DatabaseConfig(url=UNREACHABLE_URL))
        repository = BidRepository(create_session_factory(engine))

        with pytest.raises(StoreUnavailable) as exc_info:
            repository.exists_by_id("anything")

        assert exc_info.value.store == "bid store"


@pytest.fixture(params=["database", "memory"])
def any_credential_store(request, stores):
    if request.param == "database":
        return stores[1]
    return InMemoryCredentialStore()


class TestCredentialStores:

    def test_public_credentials_drop_secrets(self, any_credential_store):
        saved = any_credential_store.save(Credential(
            portal_type=PortalType.PUBLIC, portal_name="Metro", username="someone", password="pw",
        ))

        assert saved.username is None
        assert saved.password is None
        stored = any_credential_store.find_all()[0]
        assert stored.username is None
        assert stored.password is None

    def test_known_portal_url_is_filled_in(self, any_credential_store):
        saved = any_credential_store.save(Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA",
                                                     username="vendor", password="secret"))

        assert saved.url == "https://epsadmin.septa.org/vendor/requisitions/list/"
        assert any_credential_store.find_active()[0].url == saved.url

    def test_authenticated_credentials_need_secrets(self, any_credential_store):
        with pytest.raises(ValidationError) as exc_info:
            any_credential_store.save(Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA",
                                                 username="vendor"))

        assert exc_info.value.field == "username"
        assert any_credential_store.find_all() == []

    def test_unknown_portal_needs_url(self, any_credential_store):
        with pytest.raises(ValidationError) as exc_info:
            any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="County"))

        assert exc_info.value.field == "url"

    def test_portal_name_is_required(self, any_credential_store):
        with pytest.raises(ValidationError) as exc_info:
            any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="  ",
                                                 url="https://bids.example.gov"))

        assert exc_info.value.field == "portal_name"

    def test_find_active_skips_inactive(self, any_credential_store):
        any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="Metro"))
        any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="County",
                                             url="https://bids.example.gov", is_active=False))

        assert [c.portal_name for c in any_credential_store.find_active()] == ["Metro"]
        assert len(any_credential_store.find_all()) == 2

    def test_saved_credentials_get_distinct_ids(self, any_credential_store):
        metro = any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="Metro"))
        county = any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="County",
                                                      url="https://bids.example.gov"))

        assert metro.id is not None
        assert county.id is not None
        assert metro.id != county.id
        assert any_credential_store.get(county.id) == county
        assert any_credential_store.get(county.id + 100) is None

    def test_update_changes_only_given_fields(self, any_credential_store):
        saved = any_credential_store.save(Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA",
                                                     username="vendor", password="secret"))

        updated = any_credential_store.update(saved.id, password="rotated", is_active=False)

        assert updated.id == saved.id
        assert updated.username == "vendor"
        assert updated.password == "rotated"
        assert updated.url == saved.url
        assert any_credential_store.get(saved.id) == updated
        assert any_credential_store.find_active() == []

    def test_update_to_public_drops_secrets(self, any_credential_store):
        saved = any_credential_store.save(Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA",
                                                     username="vendor", password="secret"))

        updated = any_credential_store.update(saved.id, portal_type=PortalType.PUBLIC)

        assert updated.portal_type is PortalType.PUBLIC
        assert updated.username is None
        assert any_credential_store.get(saved.id).password is None

    def test_invalid_update_leaves_credential_untouched(self, any_credential_store):
        saved = any_credential_store.save(Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA",
                                                     username="vendor", password="secret"))

        with pytest.raises(ValidationError) as exc_info:
            any_credential_store.update(saved.id, password="")

        assert exc_info.value.field == "username"
        assert any_credential_store.get(saved.id).password == "secret"

    def test_update_unknown_id(self, any_credential_store):
        assert any_credential_store.update(42, portal_name="Nowhere") is None

    def test_delete(self, any_credential_store):
        saved = any_credential_store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="Metro"))

        assert any_credential_store.delete(saved.id) is True
        assert any_credential_store.delete(saved.id) is False
        assert any_credential_store.get(saved.id) is None
        assert any_credential_store.find_all() == []


def test_configured_portal_url_overrides():
    store = InMemoryCredentialStore(portal_urls={"county": "https://bids.example.gov/open"})

    saved = store.save(Credential(portal_type=PortalType.PUBLIC, portal_name="County"))

    assert saved.url == "https://bids.example.gov/open"


def test_initial_credentials_are_validated():
    with pytest.raises(ValidationError):
        InMemoryCredentialStore([Credential(portal_type=PortalType.AUTHENTICATED, portal_name="SEPTA")])
