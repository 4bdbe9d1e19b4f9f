from .extensions import db


class Setting(db.Model):
    """Persisted detection preference (auto-increment, threshold, model paths).

    Sensor readings live only in the in-memory metric stream and never reach
    this table.
    """

    __tablename__ = "settings"
    key = db.Column(db.String, primary_key=True)
    value = db.Column(db.String, nullable=False)

    def __repr__(self):
        return f"<Setting {self.key}={self.value!r}>"
