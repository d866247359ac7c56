from unittest.mock import MagicMock, patch

import pytest

from sitegen.core.errors import PersistenceFailure
from sitegen.core.publisher import ArtifactPublisher
from sitegen.core.versions import VersionStore
from sitegen.models.schemas import AssetSlot, ResolvedAsset


PLAIN_SITE = "<main>" + "x" * 200 + "</main>"


@pytest.fixture
def publisher(threaded_db, test_settings):
    _engine, factory = threaded_db
    pub = ArtifactPublisher(factory, test_settings)
    yield pub
    pub.shutdown()


class TestPublish:
    def test_stores_site_without_anchors(self, publisher, threaded_db):
        result = publisher.publish("conv1", PLAIN_SITE, model="gpt-4o")

        assert result.stored
        assert result.version_number == 1
        assert result.media_map == {}
        session = threaded_db[1]()
        stored = VersionStore(session).by_id(result.version_id)
        assert stored.site_code == PLAIN_SITE
        assert stored.model == "gpt-4o"
        assert stored.media_map is None
        session.close()

    def test_resolves_anchors_before_storing(self, publisher, threaded_db, long_site):
        hero = ResolvedAsset(slot=AssetSlot.HERO, url="/assets/conv1_hero.png")
        with patch("sitegen.core.publisher.compose_assets", return_value=[hero]) as mock_compose:
            result = publisher.publish("conv1", long_site)

        slots = mock_compose.call_args.args[0]
        assert slots == [AssetSlot.HERO]
        assert "ANCHOR:hero" not in result.code
        assert "/assets/conv1_hero.png" in result.code
        assert result.media_map == {"hero": "/assets/conv1_hero.png"}

        session = threaded_db[1]()
        stored = VersionStore(session).by_id(result.version_id)
        assert stored.site_code == result.code
        assert stored.media_map == {"hero": "/assets/conv1_hero.png"}
        session.close()

    def test_images_disabled(self, threaded_db, test_settings, long_site):
        settings = test_settings.model_copy(update={"generate_images": False})
        pub = ArtifactPublisher(threaded_db[1], settings)
        with patch("sitegen.core.publisher.compose_assets") as mock_compose:
            result = pub.publish("conv1", long_site)
        pub.shutdown()
        mock_compose.assert_not_called()
        assert result.code == long_site

    def test_asset_failure_stores_original(self, publisher, long_site):
        with patch(
            "sitegen.core.publisher.compose_assets", side_effect=RuntimeError("boom"),
        ):
            result = publisher.publish("conv1", long_site)
        assert result.stored
        assert result.code == long_site
        assert result.media_map == {}

    def test_versions_increment(self, publisher):
        first = publisher.publish("conv1", PLAIN_SITE)
        second = publisher.publish("conv1", PLAIN_SITE)
        assert (first.version_number, second.version_number) == (1, 2)

    def test_write_failure_raises(self, test_settings):
        session = MagicMock()
        session.query.side_effect = RuntimeError("db down")
        pub = ArtifactPublisher(MagicMock(return_value=session), test_settings)
        with pytest.raises(PersistenceFailure, match="db down"):
            pub.publish("conv1", PLAIN_SITE)
        pub.shutdown()
        session.rollback.assert_called_once()
        session.close.assert_called_once()


class TestSubmit:
    def test_submit_returns_future(self, publisher):
        future = publisher.submit("conv1", PLAIN_SITE, description="first")
        result = future.result(timeout=10)
        assert result.stored
        assert result.version_number == 1
        assert result.error is None

    def test_submits_are_serialized(self, publisher):
        futures = [publisher.submit("conv1", PLAIN_SITE) for _ in range(3)]
        numbers = [f.result(timeout=10).version_number for f in futures]
        assert numbers == [1, 2, 3]

    def test_submit_reports_write_failure(self, test_settings):
        session = MagicMock()
        session.query.side_effect = RuntimeError("db down")
        pub = ArtifactPublisher(MagicMock(return_value=session), test_settings)
        result = pub.submit("conv1", PLAIN_SITE).result(timeout=10)
        pub.shutdown()
        assert not result.stored
        assert "db down" in result.error
