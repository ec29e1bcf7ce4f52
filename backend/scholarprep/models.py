from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


class AuthUser(Base):
	__tablename__ = "auth_users"
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# jti of the issued token
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), index=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class StudyRecord(Base):
	__tablename__ = "study_records"
	# One row per learner; progress after their latest finished exam
	username = Column(String(128), primary_key=True)
	subjects = Column(String(256), nullable=True)
	target_date = Column(String(16), nullable=True)
	exams_finished = Column(Integer, default=0, nullable=False)
	questions_answered = Column(Integer, default=0, nullable=False)
	errors_total = Column(Integer, default=0, nullable=False)
	mastery_score = Column(Integer, default=0, nullable=False)
	completion_percentage = Column(Integer, default=0, nullable=False)
	last_payload = Column(Text, nullable=True)  # JSON string snapshot
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
