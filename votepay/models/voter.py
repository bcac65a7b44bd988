from votepay.extensions import db


class Voter(db.Model):
    __tablename__ = "voters"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50), nullable=False)

    votes = db.relationship("Vote", backref="voter", lazy=True)
