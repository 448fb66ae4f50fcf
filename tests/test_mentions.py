import uuid

import pytest

from app.domains.documents.entities import Document, Permission, Share
from app.domains.documents.mentions import MentionReconciler, extract_mentioned_ids, has_mentions


class TestExtractMentionedIds:
    def test_content_without_markers_is_empty(self):
        assert extract_mentioned_ids("<p>Hello <b>world</b></p>") == set()

    def test_none_and_empty_content(self):
        assert extract_mentioned_ids(None) == set()
        assert extract_mentioned_ids("") == set()

    def test_duplicate_markers_collapse(self):
        content = '<span data-mention="u1">@a</span> and <span data-mention="u1">@a</span>'
        assert extract_mentioned_ids(content) == {"u1"}

    def test_multiple_ids_and_quote_styles(self):
        content = """<span data-mention="u1"></span><span data-mention='u2'></span>"""
        assert extract_mentioned_ids(content) == {"u1", "u2"}

    def test_whitespace_ids_are_discarded_and_trimmed(self):
        content = '<span data-mention="   "></span><span data-mention=""></span><span data-mention=" u3 "></span>'
        assert extract_mentioned_ids(content) == {"u3"}

    def test_malformed_markup_does_not_fail(self):
        content = '<p><span data-mention="u1">@a</span><span data-mention="broken'
        assert extract_mentioned_ids(content) == {"u1"}

    def test_input_is_not_mutated_and_result_is_stable(self):
        content = '<span data-mention="u1"></span>'
        first = extract_mentioned_ids(content)
        assert extract_mentioned_ids(content) == first
        assert content == '<span data-mention="u1"></span>'

    def test_has_mentions(self):
        assert has_mentions('<span data-mention="u1"></span>')
        assert not has_mentions("<p>plain</p>")


def _marker(user_id) -> str:
    return f'<span data-mention="{user_id}">@user</span>'


def _reconciler(known_ids):
    async def user_exists(user_id):
        return user_id in known_ids

    return MentionReconciler(user_exists)


@pytest.fixture
def author_id():
    return uuid.uuid4()


@pytest.fixture
def document(author_id):
    return Document.create_document(title="Doc", author_id=author_id)


class TestMentionReconciler:
    async def test_only_newly_mentioned_ids_are_processed(self, document, author_id):
        bob, carol = uuid.uuid4(), uuid.uuid4()
        reconciler = _reconciler({bob, carol})

        outcome = await reconciler.reconcile(
            document, _marker(bob) + _marker(carol), _marker(bob), author_id
        )

        assert outcome.newly_mentioned == {str(carol)}
        assert [share.user_id for share in outcome.new_shares] == [carol]
        assert [n.recipient_id for n in outcome.notifications] == [carol]

    async def test_unchanged_mentions_trigger_nothing(self, document, author_id):
        bob = uuid.uuid4()
        reconciler = _reconciler({bob})

        outcome = await reconciler.reconcile(document, _marker(bob), _marker(bob), author_id)

        assert outcome.is_empty()

    async def test_self_mention_is_ignored(self, document, author_id):
        reconciler = _reconciler({author_id})

        outcome = await reconciler.reconcile(document, _marker(author_id), "", author_id)

        assert outcome.new_shares == []
        assert outcome.notifications == []
        assert outcome.skipped == [str(author_id)]

    async def test_already_shared_user_is_notified_but_not_reshared(self, document, author_id):
        bob = uuid.uuid4()
        document.shared_with.append(Share(user_id=bob, permission=Permission.EDIT))
        reconciler = _reconciler({bob})

        outcome = await reconciler.reconcile(document, _marker(bob), "", author_id)

        assert outcome.new_shares == []
        assert len(outcome.notifications) == 1
        # Документ не изменяется сверкой
        assert document.shared_with == [Share(user_id=bob, permission=Permission.EDIT)]

    async def test_unknown_and_malformed_ids_are_skipped(self, document, author_id):
        bob, ghost = uuid.uuid4(), uuid.uuid4()
        reconciler = _reconciler({bob})

        outcome = await reconciler.reconcile(
            document, _marker(bob) + _marker(ghost) + _marker("not-a-uuid"), "", author_id
        )

        assert [share.user_id for share in outcome.new_shares] == [bob]
        assert sorted(outcome.skipped) == sorted([str(ghost), "not-a-uuid"])

    async def test_lookup_failure_does_not_abort_other_recipients(self, document, author_id):
        bob, carol = uuid.uuid4(), uuid.uuid4()

        async def flaky_user_exists(user_id):
            if user_id == bob:
                raise RuntimeError("directory unavailable")
            return True

        outcome = await MentionReconciler(flaky_user_exists).reconcile(
            document, _marker(bob) + _marker(carol), "", author_id
        )

        assert [n.recipient_id for n in outcome.notifications] == [carol]
        assert str(bob) in outcome.skipped

    async def test_notification_intent_fields(self, document, author_id):
        bob = uuid.uuid4()
        outcome = await _reconciler({bob}).reconcile(document, _marker(bob), None, author_id)

        intent = outcome.notifications[0]
        assert intent.document_id == document.uuid
        assert intent.mentioned_by == author_id
        assert intent.recipient_id == bob

    async def test_same_id_in_different_case_is_processed_once(self, document, author_id):
        bob = uuid.uuid4()
        reconciler = _reconciler({bob})

        outcome = await reconciler.reconcile(
            document, _marker(str(bob).upper()) + _marker(str(bob)), "", author_id
        )

        assert len(outcome.newly_mentioned) == 2
        assert [share.user_id for share in outcome.new_shares] == [bob]
        assert [n.recipient_id for n in outcome.notifications] == [bob]

    async def test_author_mentioned_by_editor_is_notified_not_shared(self, document, author_id):
        editor = uuid.uuid4()
        document.shared_with.append(Share(user_id=editor, permission=Permission.EDIT))
        reconciler = _reconciler({author_id, editor})

        outcome = await reconciler.reconcile(document, _marker(author_id), "", editor)

        assert outcome.new_shares == []
        assert [n.recipient_id for n in outcome.notifications] == [author_id]
        assert [n.mentioned_by for n in outcome.notifications] == [editor]
