"""
Organization Model
Holds the organization's geofence configuration
"""
from datetime import datetime


def create_organization_model(db):
    """
    Factory function to create Organization model

    Args:
        db: SQLAlchemy database instance

    Returns:
        Organization model class
    """

    class Organization(db.Model):
        __tablename__ = 'organizations'

        id = db.Column(db.Integer, primary_key=True)
        name = db.Column(db.String(100), nullable=False)
        center_latitude = db.Column(db.Numeric(10, 7), nullable=True)
        center_longitude = db.Column(db.Numeric(10, 7), nullable=True)
        max_distance_meters = db.Column(db.Float, nullable=True)
        geofencing_enabled = db.Column(db.Boolean, nullable=False, default=True)
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

        @classmethod
        def get_active(cls):
            """Return the active organization row, or None"""
            return cls.query.filter_by(is_active=True).order_by(cls.id).first()

        def to_dict(self):
            return {
                'id': self.id,
                'name': self.name,
                'center_latitude': float(self.center_latitude) if self.center_latitude is not None else None,
                'center_longitude': float(self.center_longitude) if self.center_longitude is not None else None,
                'max_distance_meters': self.max_distance_meters,
                'geofencing_enabled': self.geofencing_enabled,
            }

    return Organization
