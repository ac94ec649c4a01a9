import datetime
import enum
import json
from typing import List, Dict, Any, Optional
from sqlalchemy import create_engine, func, select, Boolean, Column, Enum, String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, relationship

from config import settings

# SQLAlchemy database URL
SQLALCHEMY_DATABASE_URL = settings.database_url

# Engine & base
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

GPT_FIELDS = (
    "title", "name", "description", "system_instructions", "model", "temperature", "category", "files",
    "creator_name", "image_url", "gpt_url", "rating", "is_featured", "is_new",
)


class CategoryGroup(str, enum.Enum):
    DIREITO_PRIVADO = "direito_privado"
    DIREITO_PUBLICO = "direito_publico"
    DIREITO_PROCESSUAL = "direito_processual"
    GESTAO = "gestao"


GROUP_DISPLAY_NAMES = {
    CategoryGroup.DIREITO_PRIVADO: "Direito Privado",
    CategoryGroup.DIREITO_PUBLICO: "Direito Público",
    CategoryGroup.DIREITO_PROCESSUAL: "Direito Processual",
    CategoryGroup.GESTAO: "Gestão",
}


class DuplicateCategoryError(Exception):
    pass


# --- Models ---
class Gpt(Base):
    __tablename__ = 'gpts'
    gpt_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    system_instructions = Column(Text, nullable=False)
    model = Column(String, nullable=False, default=lambda: settings.default_model)
    temperature = Column(Integer, nullable=False, default=70)  # 0-100
    category = Column(String, nullable=False, index=True)
    files = Column(Text, nullable=False, default="[]")  # JSON list of upload paths
    creator_name = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    gpt_url = Column(String, nullable=True)
    rating = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_new = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.datetime.now)
    # relationship with usage logs
    usage_logs = relationship("UsageLog", back_populates="gpt", cascade="all, delete-orphan")


class UsageLog(Base):
    __tablename__ = 'usage_logs'
    log_id = Column(Integer, primary_key=True, autoincrement=True)
    gpt_id = Column(Integer, ForeignKey('gpts.gpt_id'))
    prompt = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.datetime.now)
    gpt = relationship("Gpt", back_populates="usage_logs")


class Category(Base):
    __tablename__ = 'categories'
    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    icon = Column(String, nullable=False)
    group = Column(
        Enum(CategoryGroup, values_callable=lambda groups: [g.value for g in groups]),
        nullable=False, default=CategoryGroup.DIREITO_PROCESSUAL)


def _gpt_to_dict(gpt: Gpt) -> Dict[str, Any]:
    return {
        "gpt_id": gpt.gpt_id,
        "title": gpt.title,
        "name": gpt.name,
        "description": gpt.description,
        "system_instructions": gpt.system_instructions,
        "model": gpt.model,
        "temperature": gpt.temperature,
        "category": gpt.category,
        "files": json.loads(gpt.files or "[]"),
        "creator_name": gpt.creator_name,
        "image_url": gpt.image_url,
        "gpt_url": gpt.gpt_url,
        "rating": gpt.rating,
        "views": gpt.views,
        "is_featured": gpt.is_featured,
        "is_new": gpt.is_new,
        "created_at": gpt.created_at,
    }


def _category_to_dict(category: Category) -> Dict[str, Any]:
    return {
        "category_id": category.category_id,
        "name": category.name,
        "icon": category.icon,
        "group": category.group.value,
    }


def _apply_fields(gpt: Gpt, data: Dict[str, Any]):
    for field in GPT_FIELDS:
        if field in data and data[field] is not None:
            value = json.dumps(list(data[field])) if field == "files" else data[field]
            setattr(gpt, field, value)


# --- Database helper functions ---
def create_tables():
    Base.metadata.create_all(bind=engine)


def add_gpt(data: Dict[str, Any]) -> Dict[str, Any]:
    """Create a GPT and return it."""
    db = SessionLocal()
    try:
        gpt = Gpt()
        _apply_fields(gpt, data)
        db.add(gpt)
        db.commit()
        db.refresh(gpt)
        return _gpt_to_dict(gpt)
    finally:
        db.close()


def get_gpts(category: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return all GPTs, newest first, optionally filtered by category."""
    db = SessionLocal()
    try:
        query = db.query(Gpt)
        if category:
            query = query.filter(func.lower(Gpt.category) == category.lower())
        return [_gpt_to_dict(g) for g in query.order_by(Gpt.created_at.desc(), Gpt.gpt_id.desc()).all()]
    finally:
        db.close()


def get_popular_gpts(limit: int = 10) -> List[Dict[str, Any]]:
    db = SessionLocal()
    try:
        gpts = db.query(Gpt).order_by(Gpt.views.desc(), Gpt.gpt_id).limit(limit).all()
        return [_gpt_to_dict(g) for g in gpts]
    finally:
        db.close()


def get_featured_gpts() -> List[Dict[str, Any]]:
    db = SessionLocal()
    try:
        gpts = db.query(Gpt).filter(Gpt.is_featured.is_(True)).order_by(Gpt.created_at.desc(), Gpt.gpt_id.desc()).all()
        return [_gpt_to_dict(g) for g in gpts]
    finally:
        db.close()


def get_new_gpts(limit: int = 10) -> List[Dict[str, Any]]:
    """Most recently created GPTs."""
    db = SessionLocal()
    try:
        gpts = db.query(Gpt).order_by(Gpt.created_at.desc(), Gpt.gpt_id.desc()).limit(limit).all()
        return [_gpt_to_dict(g) for g in gpts]
    finally:
        db.close()


def get_gpt(gpt_id: int) -> Optional[Dict[str, Any]]:
    db = SessionLocal()
    try:
        gpt = db.query(Gpt).filter(Gpt.gpt_id == gpt_id).first()
        return _gpt_to_dict(gpt) if gpt else None
    finally:
        db.close()


def update_gpt(gpt_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Update the given fields; fields that are missing or None are left alone."""
    db = SessionLocal()
    try:
        gpt = db.query(Gpt).filter(Gpt.gpt_id == gpt_id).first()
        if not gpt:
            return None
        _apply_fields(gpt, data)
        db.commit()
        db.refresh(gpt)
        return _gpt_to_dict(gpt)
    finally:
        db.close()


def delete_gpt(gpt_id: int) -> bool:
    """Delete a GPT and all associated usage logs."""
    db = SessionLocal()
    try:
        gpt = db.query(Gpt).filter(Gpt.gpt_id == gpt_id).first()
        if not gpt:
            return False
        db.delete(gpt)
        db.commit()
        return True
    finally:
        db.close()


def increment_gpt_views(gpt_id: int):
    db = SessionLocal()
    try:
        db.query(Gpt).filter(Gpt.gpt_id == gpt_id).update({Gpt.views: Gpt.views + 1})
        db.commit()
    finally:
        db.close()


def add_usage_log(gpt_id: int, prompt: str, response: str):
    """Record one chat exchange with a GPT."""
    db = SessionLocal()
    try:
        db.add(UsageLog(gpt_id=gpt_id, prompt=prompt, response=response))
        db.commit()
    finally:
        db.close()


def get_usage_logs(gpt_id: int) -> List[Dict[str, Any]]:
    """Retrieve the usage logs of a GPT ordered by timestamp."""
    db = SessionLocal()
    try:
        logs = db.query(UsageLog).filter(UsageLog.gpt_id == gpt_id).order_by(UsageLog.timestamp, UsageLog.log_id).all()
        return [
            {"prompt": log.prompt, "response": log.response, "timestamp": log.timestamp}
            for log in logs
        ]
    finally:
        db.close()


def add_category(data: Dict[str, Any]) -> Dict[str, Any]:
    """Create a category; names are unique."""
    db = SessionLocal()
    try:
        group = CategoryGroup(data.get("group") or CategoryGroup.DIREITO_PROCESSUAL)
        category = Category(name=data["name"], icon=data["icon"], group=group)
        db.add(category)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateCategoryError(data["name"]) from e
        db.refresh(category)
        return _category_to_dict(category)
    finally:
        db.close()


def get_categories(only_with_gpts: bool = False) -> List[Dict[str, Any]]:
    """Categories ordered by group then name, optionally only those some GPT uses."""
    db = SessionLocal()
    try:
        query = db.query(Category)
        if only_with_gpts:
            used = select(Gpt.category).distinct()
            query = query.filter(Category.name.in_(used))
        return [_category_to_dict(c) for c in query.order_by(Category.group, Category.name).all()]
    finally:
        db.close()
