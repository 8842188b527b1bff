import uuid
from sqlalchemy import JSON, TIMESTAMP, Boolean, Column, String, Uuid, func
from passlib.context import CryptContext
from ..core.database import Base

bcrypt_context = CryptContext(schemes=['bcrypt'], deprecated='auto')


class Users(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    role = Column(String(16), nullable=False, index=True)

    # admin credential
    email = Column(String(200), unique=True, index=True, nullable=True)
    password = Column(String(255), nullable=True)

    # staff / client credential ("Staff ID" + "Login PIN" in the roster CSV)
    unique_code = Column(String(64), unique=True, index=True, nullable=True)
    login_pin = Column(String(255), nullable=True)

    phone = Column(String(32), nullable=True)
    company = Column(String(200), nullable=True)
    locations = Column(JSON, nullable=False, default=list)
    mapped_location = Column(String(500), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    def set_password(self, password: str):
        self.password = bcrypt_context.hash(password)

    def verify_password(self, password: str) -> bool:
        if not self.password or not password:
            return False
        return bcrypt_context.verify(password, self.password)

    def set_login_pin(self, pin: str):
        self.login_pin = bcrypt_context.hash(str(pin))

    def verify_login_pin(self, pin: str) -> bool:
        if not self.login_pin or not pin:
            return False
        return bcrypt_context.verify(str(pin), self.login_pin)
