from pathlib import Path
import sys
import os

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for any module-level app creation during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from votepay import create_app
from votepay.errors import GatewayInitiationFailed
from votepay.extensions import db
from votepay.models import Candidate, Category, Position, Vote, Voter
from votepay.models.vote import STATUS_PENDING


class FakeGateway:
    def __init__(self):
        self.fail = False
        self.statuses = {}
        self.initiated = []
        self.queried = []

    def initiate_payment(self, phone, amount, external_id):
        if self.fail:
            raise GatewayInitiationFailed("Payment gateway timed out")
        self.initiated.append(
            {"phone": phone, "amount": amount, "external_id": external_id}
        )
        return external_id

    def query_status(self, external_id):
        self.queried.append(external_id)
        status = self.statuses.get(external_id)
        if isinstance(status, Exception):
            raise status
        return status


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "GATEWAY_URL": "https://gateway.test/pay",
            "GATEWAY_STATUS_URL": "https://gateway.test/status",
            "GATEWAY_TOKEN": "test-token",
            "GATEWAY_MERCHANT_ID": "MERCHANT",
            "GATEWAY_CALLBACK_URL": "https://votes.test/mpesa-callback",
            "GATEWAY_TIMEOUT": 5.0,
            "EXTERNAL_ID_PREFIX": "FEDCO",
            "VOTE_UNIT_PRICE": 10,
            "DEDUPLICATE_VOTERS": False,
            "KEEP_FAILED_VOTES": False,
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def gateway(app):
    fake = FakeGateway()
    app.extensions["payment_gateway"] = fake
    return fake


@pytest.fixture()
def ballot(db_session):
    category = Category(name="Executive")
    db_session.add(category)
    db_session.flush()

    position = Position(name="Chairperson", category_id=category.id)
    db_session.add(position)
    db_session.flush()

    alice = Candidate(id=5, name="Alice", position_id=position.id)
    bob = Candidate(id=6, name="Bob", position_id=position.id)
    db_session.add_all([alice, bob])
    db_session.commit()

    return {
        "category": category,
        "position": position,
        "alice": alice,
        "bob": bob,
    }


@pytest.fixture()
def make_vote(db_session):
    def _make_vote(
        candidate,
        external_id,
        amount=10,
        status=STATUS_PENDING,
        voter=None,
        voter_name="Voter",
        voter_phone="254700000000",
        created_at=None,
    ):
        if voter is None:
            voter = Voter(name=voter_name, phone=voter_phone)
            db_session.add(voter)
            db_session.flush()

        vote = Vote(
            voter_id=voter.id,
            candidate_id=candidate.id,
            external_id=external_id,
            status=status,
            amount=amount,
        )
        if created_at is not None:
            vote.created_at = created_at
        db_session.add(vote)
        db_session.commit()
        return vote

    return _make_vote
