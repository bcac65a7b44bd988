from votepay.extensions import db


class Candidate(db.Model):
    __tablename__ = "candidates"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    position_id = db.Column(
        db.Integer, db.ForeignKey("positions.id"), nullable=False, index=True
    )

    votes = db.relationship("Vote", backref="candidate", lazy=True)
