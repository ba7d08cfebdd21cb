import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('GOOGLE_CLIENT_ID', 'test-client-id')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.auth import jwt_handler  # noqa: E402
from backend.database import Base, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.answer import Answer, Comment  # noqa: E402
from backend.models.question import Question  # noqa: E402
from backend.models.user import User  # noqa: E402

engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = 'student', name: str | None = None, is_active: bool = True) -> User:
        user = User(
            email=email,
            name=name or email.split('@', 1)[0].title(),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_question(db):
    def _make_question(author: User, title: str = 'Help with recursion', **fields) -> Question:
        question = Question(
            title=title,
            content=fields.pop('content', 'How does a base case stop recursion?'),
            category=fields.pop('category', 'technical'),
            priority=fields.pop('priority', 'medium'),
            author_id=author.id,
            **fields,
        )
        db.add(question)
        db.commit()
        db.refresh(question)
        return question

    return _make_question


@pytest.fixture
def make_answer(db):
    def _make_answer(question: Question, author: User, content: str = 'Think about the smallest input.') -> Answer:
        answer = Answer(content=content, question_id=question.id, author_id=author.id)
        db.add(answer)
        db.commit()
        db.refresh(answer)
        return answer

    return _make_answer


@pytest.fixture
def make_comment(db):
    def _make_comment(answer: Answer, author: User, content: str = 'Thanks!') -> Comment:
        comment = Comment(answer_id=answer.id, author_id=author.id, content=content)
        db.add(comment)
        db.commit()
        db.refresh(comment)
        return comment

    return _make_comment


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_handler.issue(user)}'}

    return _auth_headers
