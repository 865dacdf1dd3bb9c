from __future__ import annotations

import threading

import pytest

from app.chat import ConversationLifecycleManager, SqlUserDirectory
from app.chat.errors import ClaimConflict
from app.chat.models import Conversation
from tests.conftest import make_session_factory, seed_users


@pytest.fixture()
def file_factory(tmp_path):
    factory = make_session_factory(
        f"sqlite+pysqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield factory
    factory.kw["bind"].dispose()


def test_concurrent_claims_have_one_winner(file_factory):
    users = seed_users(file_factory)
    lifecycle = ConversationLifecycleManager(SqlUserDirectory())
    with file_factory() as db:
        conversation_id = lifecycle.join_as_candidate(db, users.candidate).conversation.id

    start = threading.Barrier(2)
    winners = []
    losers = []

    def claim(admin_id):
        with file_factory() as db:
            start.wait()
            try:
                lifecycle.claim(db, admin_id, conversation_id)
                winners.append(admin_id)
            except ClaimConflict:
                losers.append(admin_id)

    threads = [threading.Thread(target=claim, args=(a,)) for a in (users.admin, users.admin2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(losers) == 1
    with file_factory() as db:
        conversation = db.get(Conversation, conversation_id)
        assert conversation.admin_id == winners[0]
        assert conversation.version == 2
