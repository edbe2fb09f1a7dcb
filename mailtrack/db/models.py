"""Database models for workspaces, subscribers, segments and tracked messages."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subscribers = relationship("Subscriber", back_populates="workspace", cascade="all, delete-orphan")
    segments = relationship("Segment", back_populates="workspace", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="workspace", cascade="all, delete-orphan")


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(Integer, primary_key=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    email = Column(String(320), nullable=False, index=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    unsubscribed_at = Column(DateTime(timezone=True), nullable=True)
    unsubscribe_reason = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    workspace = relationship("Workspace", back_populates="subscribers")
    messages = relationship("Message", back_populates="subscriber")


class Segment(Base):
    __tablename__ = "segments"
    __table_args__ = (UniqueConstraint("workspace_id", "name", name="uq_segments_workspace_name"),)

    id = Column(Integer, primary_key=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    workspace = relationship("Workspace", back_populates="segments")


class Message(Base):
    """A sent email, correlated with SES events through ``message_id``."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    subscriber_id = Column(Integer, ForeignKey("subscribers.id"), nullable=True)
    recipient_email = Column(String(320), nullable=False)
    subject = Column(String(255), nullable=True)
    message_id = Column(String(255), nullable=False, index=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=True)
    open_count = Column(Integer, nullable=False, default=0)
    ip = Column(String(64), nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=True)
    click_count = Column(Integer, nullable=False, default=0)
    bounced_at = Column(DateTime(timezone=True), nullable=True)
    complained_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    workspace = relationship("Workspace", back_populates="messages")
    subscriber = relationship("Subscriber", back_populates="messages")
    urls = relationship("MessageUrl", back_populates="message", cascade="all, delete-orphan")
    # Audit rows outlive the message; their message_pk is nulled on delete.
    events = relationship("EmailEvent")


class MessageUrl(Base):
    __tablename__ = "message_urls"
    __table_args__ = (UniqueConstraint("message_pk", "url", name="uq_message_urls_message_url"),)

    id = Column(Integer, primary_key=True)
    message_pk = Column(Integer, ForeignKey("messages.id"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    click_count = Column(Integer, nullable=False, default=0)

    message = relationship("Message", back_populates="urls")


class EmailEvent(Base):
    """Audit trail of every event handed to the recorder."""

    __tablename__ = "email_events"

    id = Column(Integer, primary_key=True)
    message_pk = Column(Integer, ForeignKey("messages.id"), nullable=True, index=True)
    ses_message_id = Column(String(255), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now())
