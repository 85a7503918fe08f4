"""
Training class models
Classes taught by trainers and the trainer-to-class assignments
"""
from datetime import datetime


def create_training_class_models(db):
    """
    Factory function to create TrainingClass and TrainerClassAssignment models

    Args:
        db: SQLAlchemy database instance

    Returns:
        tuple: (TrainingClass, TrainerClassAssignment)
    """

    class TrainingClass(db.Model):
        """
        A class a trainer can check into

        duration_hours is the configured length; the class session cutoff is
        capped by policy regardless of this value.
        """
        __tablename__ = 'classes'

        id = db.Column(db.Integer, primary_key=True)
        name = db.Column(db.String(100), nullable=False)
        code = db.Column(db.String(30), nullable=False, unique=True)
        description = db.Column(db.Text)
        department = db.Column(db.String(100))
        duration_hours = db.Column(db.Float, nullable=False, default=2.0)
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        def to_dict(self):
            return {
                'id': self.id,
                'name': self.name,
                'code': self.code,
                'description': self.description,
                'department': self.department,
                'duration_hours': self.duration_hours,
                'is_active': self.is_active,
            }

        def __repr__(self):
            return f'<TrainingClass {self.id}: {self.code}>'

    class TrainerClassAssignment(db.Model):
        """Assignment of a trainer to a class (one row per pair)"""
        __tablename__ = 'trainer_class_assignments'

        id = db.Column(db.Integer, primary_key=True)
        trainer_id = db.Column(
            db.Integer,
            db.ForeignKey('employees.id', ondelete='CASCADE'),
            nullable=False,
            index=True
        )
        class_id = db.Column(
            db.Integer,
            db.ForeignKey('classes.id', ondelete='CASCADE'),
            nullable=False
        )
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        __table_args__ = (
            db.UniqueConstraint('trainer_id', 'class_id', name='uix_trainer_class'),
        )

        training_class = db.relationship('TrainingClass', lazy='joined')

        def __repr__(self):
            return f'<TrainerClassAssignment trainer={self.trainer_id} class={self.class_id}>'

    return TrainingClass, TrainerClassAssignment
