import pytest

from backend.core import errors
from backend.models.notification import Notification
from backend.services import notifications


def test_list_for_user_returns_newest_first(db, make_user) -> None:
    student = make_user('student@example.edu')
    other = make_user('other@example.edu')
    first = notifications.create(db, student.id, 'First', 'one')
    second = notifications.create(db, student.id, 'Second', 'two')
    notifications.create(db, other.id, 'Elsewhere', 'not yours')
    third = notifications.create(db, student.id, 'Third', 'three')

    listed = notifications.list_for_user(db, student.id)

    assert [item.id for item in listed] == [third.id, second.id, first.id]


def test_list_for_user_can_filter_unread_and_limit(db, make_user) -> None:
    student = make_user('student@example.edu')
    read = notifications.create(db, student.id, 'Read', 'done')
    notifications.mark_read(db, read.id, student)
    unread = notifications.create(db, student.id, 'Unread', 'pending')
    notifications.create(db, student.id, 'Newest', 'pending')

    assert [item.title for item in notifications.list_for_user(db, student.id, unread_only=True)] == ['Newest', 'Unread']
    assert len(notifications.list_for_user(db, student.id, limit=1)) == 1
    assert notifications.unread_count(db, student.id) == 2
    assert unread.is_read is False


def test_mark_read_rejects_other_students(db, make_user) -> None:
    owner = make_user('owner@example.edu')
    intruder = make_user('intruder@example.edu')
    notification = notifications.create(db, owner.id, 'Hello', 'message')

    with pytest.raises(errors.AuthorizationError):
        notifications.mark_read(db, notification.id, intruder)

    db.refresh(notification)
    assert notification.is_read is False


def test_admin_can_manage_any_notification(db, make_user) -> None:
    owner = make_user('owner@example.edu')
    admin = make_user('admin@example.edu', role='admin')
    notification = notifications.create(db, owner.id, 'Hello', 'message')

    assert notifications.mark_read(db, notification.id, admin).is_read is True
    notification_id = notification.id
    notifications.delete(db, notification_id, admin)

    assert db.get(Notification, notification_id) is None


def test_teacher_cannot_delete_someone_elses_notification(db, make_user) -> None:
    owner = make_user('owner@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')
    notification = notifications.create(db, owner.id, 'Hello', 'message')

    with pytest.raises(errors.AuthorizationError):
        notifications.delete(db, notification.id, teacher)


def test_mark_all_read_only_touches_callers_notifications(db, make_user) -> None:
    student = make_user('student@example.edu')
    other = make_user('other@example.edu')
    notifications.create(db, student.id, 'A', 'a')
    notifications.create(db, student.id, 'B', 'b')
    notifications.create(db, other.id, 'C', 'c')

    assert notifications.mark_all_read(db, student.id) == 2
    assert notifications.unread_count(db, student.id) == 0
    assert notifications.unread_count(db, other.id) == 1


def test_delete_unknown_notification_is_not_found(db, make_user) -> None:
    student = make_user('student@example.edu')

    with pytest.raises(errors.NotFoundError):
        notifications.delete(db, 12345, student)
