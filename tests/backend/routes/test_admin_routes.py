import pytest

from backend.models.moderation_log import ModerationLog
from backend.models.notification import Notification
from backend.models.question import Question


def test_student_cannot_archive_and_nothing_changes(client, db, make_user, make_question, auth_headers) -> None:
    student = make_user('student@example.edu')
    author = make_user('author@example.edu')
    question = make_question(author)

    response = client.patch(f'/api/admin/questions/{question.id}/archive', headers=auth_headers(student))

    assert response.status_code == 403
    db.refresh(question)
    assert question.is_archived is False
    assert db.query(Notification).count() == 0
    assert db.query(ModerationLog).count() == 0


@pytest.mark.parametrize(
    'path',
    ['/api/admin/stats', '/api/admin/users', '/api/admin/questions', '/api/admin/logs'],
)
def test_admin_reads_require_moderator(client, make_user, auth_headers, path) -> None:
    student = make_user('student@example.edu')

    assert client.get(path).status_code == 401
    assert client.get(path, headers=auth_headers(student)).status_code == 403


def test_stats_counts_users_and_content(
    client, make_user, make_question, make_answer, auth_headers
) -> None:
    student = make_user('student@example.edu')
    make_user('inactive@example.edu', is_active=False)
    teacher = make_user('teacher@example.edu', role='teacher')
    make_user('admin@example.edu', role='admin')
    question = make_question(student, is_resolved=True)
    make_question(student, title='Old question', is_archived=True)
    make_answer(question, teacher)

    response = client.get('/api/admin/stats', headers=auth_headers(teacher))

    assert response.json() == {
        'stats': {
            'users': {'total': 4, 'active': 3, 'students': 2, 'teachers': 1, 'admins': 1},
            'content': {'questions': 2, 'resolved': 1, 'archived': 1, 'answers': 1},
        }
    }


def test_list_users_filters_by_role_and_search(client, make_user, auth_headers) -> None:
    teacher = make_user('teacher@example.edu', role='teacher', name='Grace Hopper')
    make_user('ada@example.edu', name='Ada Lovelace')
    make_user('alan@example.edu', name='Alan Turing')

    students = client.get('/api/admin/users', params={'role': 'student'}, headers=auth_headers(teacher)).json()
    searched = client.get('/api/admin/users', params={'search': 'lovelace'}, headers=auth_headers(teacher)).json()

    assert sorted(user['email'] for user in students['users']) == ['ada@example.edu', 'alan@example.edu']
    assert students['pagination']['total'] == 2
    assert [user['name'] for user in searched['users']] == ['Ada Lovelace']


def test_update_role_by_teacher(client, db, make_user, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')

    response = client.patch(
        f'/api/admin/users/{student.id}/role',
        json={'role': 'teacher'},
        headers=auth_headers(teacher),
    )

    assert response.status_code == 200
    assert response.json()['user']['role'] == 'teacher'
    log = db.query(ModerationLog).one()
    assert log.details == 'student -> teacher'


def test_update_role_rejects_invalid_role(client, make_user, auth_headers) -> None:
    student = make_user('student@example.edu')
    admin = make_user('admin@example.edu', role='admin')

    response = client.patch(
        f'/api/admin/users/{student.id}/role',
        json={'role': 'superuser'},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert response.json() == {'message': 'Role must be one of: admin, student, teacher.'}


def test_teacher_cannot_promote_to_admin(client, make_user, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')

    response = client.patch(
        f'/api/admin/users/{student.id}/role',
        json={'role': 'admin'},
        headers=auth_headers(teacher),
    )

    assert response.status_code == 403


def test_update_role_for_unknown_user(client, make_user, auth_headers) -> None:
    admin = make_user('admin@example.edu', role='admin')

    response = client.patch('/api/admin/users/999/role', json={'role': 'teacher'}, headers=auth_headers(admin))

    assert response.status_code == 404


def test_deactivated_user_is_locked_out(client, make_user, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')
    student_headers = auth_headers(student)

    response = client.patch(f'/api/admin/users/{student.id}/status', headers=auth_headers(teacher))

    assert response.json()['user']['isActive'] is False
    assert client.get('/api/auth/me', headers=student_headers).status_code == 403


def test_admin_question_list_includes_archived(client, make_user, make_question, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')
    make_question(student, title='Open')
    make_question(student, title='Hidden', is_archived=True)

    everything = client.get('/api/admin/questions', headers=auth_headers(teacher)).json()
    archived = client.get('/api/admin/questions', params={'archived': 'true'}, headers=auth_headers(teacher)).json()

    assert sorted(item['title'] for item in everything['questions']) == ['Hidden', 'Open']
    assert [item['title'] for item in archived['questions']] == ['Hidden']


def test_moderator_delete_question_cascades(
    client, db, make_user, make_question, make_answer, make_comment, auth_headers
) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')
    question = make_question(student)
    question_id = question.id
    make_comment(make_answer(question, teacher), student)

    response = client.delete(f'/api/admin/questions/{question_id}', headers=auth_headers(teacher))

    assert response.status_code == 200
    assert db.query(Question).count() == 0
    answers = client.get(f'/api/answers/question/{question_id}', headers=auth_headers(teacher))
    assert answers.status_code == 404


def test_moderator_delete_answer(client, make_user, make_question, make_answer, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher')
    answer_id = make_answer(make_question(teacher), student).id

    response = client.delete(f'/api/admin/answers/{answer_id}', headers=auth_headers(teacher))

    assert response.json() == {'message': 'Answer deleted successfully'}
    assert client.delete(f'/api/admin/answers/{answer_id}', headers=auth_headers(teacher)).status_code == 404


def test_logs_list_newest_first_with_actor(client, make_user, make_question, auth_headers) -> None:
    student = make_user('student@example.edu')
    teacher = make_user('teacher@example.edu', role='teacher', name='Grace Hopper')
    first = make_question(student, title='First')
    second = make_question(student, title='Second')

    client.patch(f'/api/admin/questions/{first.id}/archive', headers=auth_headers(teacher))
    client.patch(f'/api/admin/questions/{second.id}/archive', headers=auth_headers(teacher))
    response = client.get('/api/admin/logs', headers=auth_headers(teacher)).json()

    assert [entry['targetId'] for entry in response['logs']] == [second.id, first.id]
    assert response['logs'][0]['action'] == 'archive'
    assert response['logs'][0]['actor']['name'] == 'Grace Hopper'
    assert response['pagination']['total'] == 2
