from __future__ import annotations

import uuid

import pytest

from eventease.services import feedback_service
from eventease.services.exceptions import NotFoundError, PermissionDeniedError
from tests.factories import make_event, make_organizer, make_user


def test_resubmitted_feedback_moves_to_the_top(db_session):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com", first_name="Alice")
    bob = make_user(db_session, "bob@example.com", first_name="Bob")
    event = make_event(db_session, organizer)

    first = feedback_service.submit_feedback(db_session, alice, event.id, 3, "Okay")
    feedback_service.submit_feedback(db_session, bob, event.id, 4, "Nice")
    assert [f.participant_id for f in feedback_service.list_feedback(db_session, event.id)] == [bob.id, alice.id]

    again = feedback_service.submit_feedback(db_session, alice, event.id, 5, "Better on reflection")

    assert again.id == first.id
    listed = feedback_service.list_feedback(db_session, event.id)
    assert [(f.participant_id, f.rating) for f in listed] == [(alice.id, 5), (bob.id, 4)]


def test_feedback_guards(db_session):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer)

    with pytest.raises(PermissionDeniedError):
        feedback_service.submit_feedback(db_session, organizer, event.id, 5, "Mine")
    with pytest.raises(NotFoundError):
        feedback_service.submit_feedback(db_session, alice, uuid.uuid4(), 5, "Where?")
    with pytest.raises(NotFoundError):
        feedback_service.list_feedback(db_session, uuid.uuid4())
