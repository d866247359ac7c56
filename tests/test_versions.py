import threading
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sitegen.core import versions
from sitegen.core.versions import VersionStore, conversation_lock, resolve_version
from sitegen.db import Base


class TestVersionStore:
    def test_first_version_is_one(self, db_session):
        version = VersionStore(db_session).create_version("conv1", "<main>a</main>")
        assert version.version_number == 1
        assert version.site_code == "<main>a</main>"

    def test_next_version_increments(self, db_session):
        store = VersionStore(db_session)
        store.create_version("conv1", "a")
        store.create_version("conv1", "b")
        third = store.create_version("conv1", "c", description="tweak", model="gpt-4o")
        assert third.version_number == 3
        assert third.description == "tweak"
        assert third.model == "gpt-4o"

    def test_conversations_are_independent(self, db_session):
        store = VersionStore(db_session)
        store.create_version("conv1", "a")
        store.create_version("conv1", "b")
        other = store.create_version("conv2", "x")
        assert other.version_number == 1

    def test_history_is_ordered(self, db_session):
        store = VersionStore(db_session)
        for code in ("a", "b", "c"):
            store.create_version("conv1", code)
        assert [v.site_code for v in store.history("conv1")] == ["a", "b", "c"]

    def test_latest(self, db_session):
        store = VersionStore(db_session)
        store.create_version("conv1", "a")
        store.create_version("conv1", "b")
        assert store.latest("conv1").site_code == "b"
        assert store.latest("missing") is None

    def test_media_map_stored(self, db_session):
        version = VersionStore(db_session).create_version(
            "conv1", "a", media_map={"hero": "/assets/h.png"},
        )
        assert version.media_map == {"hero": "/assets/h.png"}

    def test_concurrent_creates_get_distinct_numbers(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'versions.db'}")
        Base.metadata.create_all(engine)
        factory = sessionmaker(bind=engine)
        numbers = []
        errors = []

        def worker(i):
            session = factory()
            try:
                v = VersionStore(session).create_version("conv1", f"code {i}")
                numbers.append(v.version_number)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        engine.dispose()

        assert errors == []
        assert sorted(numbers) == [1, 2, 3, 4, 5]


class TestConversationLock:
    def test_entry_released_after_use(self):
        with conversation_lock("conv-lock-a"):
            assert "conv-lock-a" in versions._conversation_locks
        assert "conv-lock-a" not in versions._conversation_locks

    def test_entry_released_after_error(self):
        with pytest.raises(RuntimeError):
            with conversation_lock("conv-lock-b"):
                raise RuntimeError("boom")
        assert "conv-lock-b" not in versions._conversation_locks

    def test_waiter_shares_lock_with_holder(self):
        order = []

        def waiter():
            with conversation_lock("conv-lock-c"):
                order.append("waiter")

        with conversation_lock("conv-lock-c"):
            lock = versions._conversation_locks["conv-lock-c"][0]
            thread = threading.Thread(target=waiter)
            thread.start()
            # Wait until the waiter has registered on the same entry
            deadline = time.time() + 5
            while versions._conversation_locks["conv-lock-c"][1] < 2 and time.time() < deadline:
                time.sleep(0.01)
            assert versions._conversation_locks["conv-lock-c"][0] is lock
            order.append("holder")
        thread.join(timeout=5)

        assert order == ["holder", "waiter"]
        assert "conv-lock-c" not in versions._conversation_locks


class TestResolveVersion:
    def test_exact_id_wins_over_latest(self, db_session):
        store = VersionStore(db_session)
        v1 = store.create_version("conv1", "first")
        store.create_version("conv1", "second")
        resolved = resolve_version(db_session, v1.id)
        assert resolved.id == v1.id
        assert resolved.site_code == "first"

    def test_conversation_id_gives_highest_number(self, db_session):
        store = VersionStore(db_session)
        store.create_version("conv1", "first")
        v2 = store.create_version("conv1", "second")
        assert resolve_version(db_session, "conv1").id == v2.id

    def test_unknown_identifier(self, db_session):
        assert resolve_version(db_session, "nope") is None

    def test_empty_identifier(self, db_session):
        assert resolve_version(db_session, "") is None
