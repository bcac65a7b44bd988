from votepay.models import Candidate, Position, Voter
from votepay.services.voting import compute_standings, compute_voters_summary
from votepay.services.voting.results import vote_percentage


def _candidates(standings):
    return standings[0]["positions"][0]["candidates"]


def test_standings_count_votes_by_unit_price(db_session, ballot, make_vote):
    make_vote(ballot["alice"], "TX_1", status="completed", voter_name="V1")
    make_vote(ballot["alice"], "TX_2", status="completed", voter_name="V2")
    make_vote(ballot["bob"], "TX_3", status="completed", voter_name="V3")

    standings = compute_standings(db_session, unit_price=10)

    assert standings[0]["name"] == "Executive"
    assert standings[0]["positions"][0]["name"] == "Chairperson"
    alice, bob = _candidates(standings)
    assert (alice["id"], bob["id"]) == (5, 6)
    assert alice["vote_count"] == 2
    assert bob["vote_count"] == 1
    assert alice["all_vote_count"] == 3
    assert bob["all_vote_count"] == 3
    assert alice["vote_percentage"] == 66
    assert bob["vote_percentage"] == 33
    assert alice["amount"] == 20


def test_only_completed_votes_are_counted(db_session, ballot, make_vote):
    make_vote(ballot["alice"], "TX_1", status="completed", amount=50)
    make_vote(ballot["bob"], "TX_2", status="pending", amount=100)
    make_vote(ballot["bob"], "TX_3", status="failed", amount=100)

    alice, bob = _candidates(compute_standings(db_session, unit_price=10))

    assert alice["vote_count"] == 5
    assert alice["vote_percentage"] == 100
    assert bob["vote_count"] == 0
    assert bob["amount"] == 0
    assert bob["voters_count"] == 0
    assert bob["voters"] == []
    assert bob["vote_percentage"] == 0


def test_position_without_completed_votes_reports_zero_percent(db_session, ballot, make_vote):
    make_vote(ballot["alice"], "TX_1", status="pending")

    for candidate in _candidates(compute_standings(db_session, unit_price=10)):
        assert candidate["all_vote_count"] == 0
        assert candidate["vote_percentage"] == 0


def test_candidates_are_ranked_by_distinct_voters(db_session, ballot, make_vote):
    loyal = Voter(name="Loyal", phone="254700000001")
    db_session.add(loyal)
    db_session.commit()
    make_vote(ballot["alice"], "TX_1", status="completed", voter=loyal)
    make_vote(ballot["alice"], "TX_2", status="completed", voter=loyal)
    make_vote(ballot["bob"], "TX_3", status="completed", voter_name="B1")
    make_vote(ballot["bob"], "TX_4", status="completed", voter_name="B2")
    make_vote(ballot["bob"], "TX_5", status="pending", voter_name="B3")

    first, second = _candidates(compute_standings(db_session, unit_price=10))

    assert first["name"] == "Bob"
    assert first["voters_count"] == 2
    assert [voter["name"] for voter in first["voters"]] == ["B1", "B2"]
    assert second["name"] == "Alice"
    assert second["voters_count"] == 1
    assert second["voters"] == [{"name": "Loyal", "phone": "254700000001", "votes": 2}]


def test_positions_are_scoped_to_their_own_candidates(db_session, ballot, make_vote):
    treasurer = Position(name="Treasurer", category_id=ballot["category"].id)
    db_session.add(treasurer)
    db_session.flush()
    carol = Candidate(name="Carol", position_id=treasurer.id)
    db_session.add(carol)
    db_session.commit()

    make_vote(ballot["alice"], "TX_1", status="completed")
    make_vote(carol, "TX_2", status="completed", amount=30)

    positions = compute_standings(db_session, unit_price=10)[0]["positions"]

    assert [position["name"] for position in positions] == ["Chairperson", "Treasurer"]
    assert positions[0]["candidates"][0]["all_vote_count"] == 1
    assert positions[1]["candidates"][0]["all_vote_count"] == 3
    assert positions[1]["candidates"][0]["vote_percentage"] == 100


def test_vote_percentage_truncates():
    assert vote_percentage(1, 3) == 33
    assert vote_percentage(2, 3) == 66
    assert vote_percentage(0, 0) == 0


def test_voters_summary_counts_completed_votes(db_session, ballot, make_vote):
    loyal = Voter(name="Loyal", phone="254700000001")
    db_session.add(loyal)
    db_session.commit()
    make_vote(ballot["alice"], "TX_1", status="completed", voter=loyal)
    make_vote(ballot["bob"], "TX_2", status="completed", voter=loyal)
    make_vote(ballot["bob"], "TX_3", status="completed", voter_name="Once", voter_phone="254700000002")
    make_vote(ballot["bob"], "TX_4", status="pending", voter_name="Waiting")

    summary = compute_voters_summary(db_session)

    assert summary["total_votes"] == 3
    assert summary["total_voters"] == 2
    assert summary["voters"] == [
        {"name": "Loyal", "phone": "254700000001", "votes": 2},
        {"name": "Once", "phone": "254700000002", "votes": 1},
    ]
