from typing import List, Optional

from sqlalchemy.orm import Session

from studio_attendance.db.models.group import GroupConfig
from studio_attendance.schemas.group import GroupConfigCreate, GroupConfigUpdate


def get_groups(db: Session, include_inactive: bool = False) -> List[GroupConfig]:
    query = db.query(GroupConfig)
    if not include_inactive:
        query = query.filter(GroupConfig.active.is_(True))
    return query.order_by(GroupConfig.group_id).all()


def get_group(db: Session, group_id: str) -> Optional[GroupConfig]:
    return db.query(GroupConfig).filter(GroupConfig.group_id == group_id).first()


def get_active_group(db: Session, group_id: str) -> Optional[GroupConfig]:
    return (
        db.query(GroupConfig)
        .filter(GroupConfig.group_id == group_id, GroupConfig.active.is_(True))
        .first()
    )


def create_group(db: Session, data: GroupConfigCreate) -> GroupConfig:
    group = GroupConfig(
        group_id=data.group_id,
        name=data.name,
        spreadsheet_id=data.spreadsheet_id,
        sheet_group_id=data.sheet_group_id,
        active=True,
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


def update_group(db: Session, group: GroupConfig, data: GroupConfigUpdate) -> GroupConfig:
    for name, value in data.model_dump(exclude_unset=True).items():
        setattr(group, name, value)
    db.commit()
    db.refresh(group)
    return group


def deactivate_group(db: Session, group: GroupConfig) -> GroupConfig:
    group.active = False
    db.commit()
    db.refresh(group)
    return group
