"""
Employee model
Staff members who check in to work; trainers additionally teach classes
"""
from datetime import datetime


def create_employee_model(db):
    """Factory function to create Employee model with db instance"""

    class Employee(db.Model):
        """
        Employee model

        Attributes:
            id: Employee identifier (matches employeeId in the session identity)
            name: Full name
            email: Contact email
            department: Department name
            role: 'admin' or 'employee'
            is_trainer: Whether the employee can be assigned to classes
            is_active: Only active employees are marked absent by the sweep
        """
        __tablename__ = 'employees'

        id = db.Column(db.Integer, primary_key=True)
        name = db.Column(db.String(100), nullable=False)
        email = db.Column(db.String(120), unique=True)
        department = db.Column(db.String(100))
        role = db.Column(db.String(20), nullable=False, default='employee')
        is_trainer = db.Column(db.Boolean, nullable=False, default=False)
        is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        ROLE_ADMIN = 'admin'
        ROLE_EMPLOYEE = 'employee'

        def to_dict(self):
            return {
                'id': self.id,
                'name': self.name,
                'email': self.email,
                'department': self.department,
                'role': self.role,
                'is_trainer': self.is_trainer,
                'is_active': self.is_active,
            }

        def __repr__(self):
            return f'<Employee {self.id}: {self.name}>'

    return Employee
