"""
Location Heartbeat Model
Periodic device positions reported by the mobile app
"""
from datetime import datetime


def create_location_heartbeat_model(db):
    """Factory function to create LocationHeartbeat model"""

    class LocationHeartbeat(db.Model):
        __tablename__ = 'location_heartbeats'

        id = db.Column(db.Integer, primary_key=True)
        employee_id = db.Column(
            db.Integer,
            db.ForeignKey('employees.id', ondelete='CASCADE'),
            nullable=False,
            index=True
        )
        latitude = db.Column(db.Float, nullable=False)
        longitude = db.Column(db.Float, nullable=False)
        accuracy = db.Column(db.Float, nullable=False)
        distance_meters = db.Column(db.Float, nullable=True)
        is_inside_fence = db.Column(db.Boolean, nullable=False)
        recorded_at = db.Column(db.DateTime, nullable=False, index=True)

        def to_dict(self):
            return {
                'id': self.id,
                'employee_id': self.employee_id,
                'latitude': self.latitude,
                'longitude': self.longitude,
                'accuracy': self.accuracy,
                'distance_meters': self.distance_meters,
                'is_inside_fence': self.is_inside_fence,
                'recorded_at': self.recorded_at.isoformat(),
            }

    return LocationHeartbeat
