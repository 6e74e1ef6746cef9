from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index, false
from db.session import Base


class PasswordResetOTP(Base):
    __tablename__ = "password_reset_otps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), index=True, nullable=False)
    otp_code = Column(String(6), nullable=False)
    # Naive UTC timestamps, set explicitly at issuance
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False, server_default=false(), nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    __table_args__ = (
        Index("ix_password_reset_email_created", "email", "created_at"),
    )

    def __repr__(self):
        return f"<PasswordResetOTP id={self.id} email={self.email} used={self.used}>"
