# app/models/crypto_meta.py
from sqlalchemy import Column, String, Text
from app.database import Base

class CryptoMeta(Base):
    """암호화 메타데이터 (키 유도용 salt 등)"""
    __tablename__ = "crypto_meta"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)  # base64
