from sqlalchemy import Column, String, DateTime, ForeignKey, TypeDecorator
from classhub.db.session import Base, BigId
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, validates
from classhub.schemas.users import UserRole, UserStatus


class UserRoleEnum(TypeDecorator):
    """Store the role's value ("TEACHER") and hand back the enum member."""
    impl = String
    cache_ok = True

    def __init__(self):
        super().__init__(length=20)

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, UserRole):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return UserRole(value)


class User(Base):
    __tablename__ = "users"

    id = Column(BigId, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    phone_number = Column(String(16), nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(UserRoleEnum(), nullable=False)
    status = Column(String(10), nullable=False, default=UserStatus.ACTIVE.value)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=True)
    teacher_id = Column(BigId, ForeignKey("teachers.id"), nullable=True)
    student_id = Column(BigId, ForeignKey("students.id"), nullable=True)
    created_at = Column(DateTime, default=func.now())

    school = relationship("School")
    teacher = relationship("Teacher")
    student = relationship("Student")

    @validates('role')
    def validate_role(self, key, role):
        if isinstance(role, str) and not isinstance(role, UserRole):
            try:
                return UserRole(role)
            except ValueError:
                valid_values = [e.value for e in UserRole]
                raise ValueError(f"Invalid role value '{role}'. Must be one of: {valid_values}")
        return role

    @validates('status')
    def validate_status(self, key, status):
        if isinstance(status, UserStatus):
            return status.value
        if status not in {s.value for s in UserStatus}:
            raise ValueError(f"Invalid status value '{status}'")
        return status

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def verify_password(self, password: str):
        from classhub.core.security import verify_password
        return verify_password(password, self.password_hash)
