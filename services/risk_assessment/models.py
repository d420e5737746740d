import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class QuestionType(str, enum.Enum):
    text = "text"
    number = "number"
    select = "select"


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    text: Mapped[str] = mapped_column(Text)
    question_type: Mapped[QuestionType] = mapped_column(Enum(QuestionType), default=QuestionType.select)
    category: Mapped[str] = mapped_column(String, default="", index=True)
    display_order: Mapped[int] = mapped_column(default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    tooltip: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Conditional display: shown only when the parent question has this answer.
    depends_on_question_id: Mapped[str | None] = mapped_column(String, ForeignKey("questions.id"), nullable=True)
    depends_on_value: Mapped[str | None] = mapped_column(String, nullable=True)

    # Set by the admin screens; seeded/migrated rows leave it empty.
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    options: Mapped[list["QuestionOption"]] = relationship(
        back_populates="question",
        order_by="QuestionOption.display_order",
    )


class QuestionOption(Base):
    __tablename__ = "question_options"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    question_id: Mapped[str] = mapped_column(String, ForeignKey("questions.id"), index=True)
    value: Mapped[str] = mapped_column(String)
    label: Mapped[str] = mapped_column(String)
    # NULL means the option is worth no points.
    score: Mapped[int | None] = mapped_column(nullable=True)
    display_order: Mapped[int | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("question_id", "value", name="uq_question_option_value"),)

    question: Mapped[Question] = relationship(back_populates="options")


class AdviceBand(Base):
    __tablename__ = "advice_bands"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    min_score: Mapped[int] = mapped_column()
    max_score: Mapped[int] = mapped_column()
    risk_tier: Mapped[str] = mapped_column(String, unique=True, index=True)
    advice: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
