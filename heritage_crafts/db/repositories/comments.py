from typing import Dict, List, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.comments import Comment, CommentLike, Report
from heritage_crafts.db.models.enums import EntityType, ReportStatus


class CommentRepository(BaseRepository[Comment]):
    model = Comment

    def list_for_entity(
        self,
        entity_type: EntityType,
        entity_id: int,
        *,
        top_level_only: bool = True,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[Comment]:
        stmt = select(Comment).where(
            Comment.entity_type == entity_type,
            Comment.entity_id == entity_id,
            Comment.is_deleted.is_(False),
        )
        if top_level_only:
            stmt = stmt.where(Comment.parent_id.is_(None))
        stmt = stmt.order_by(Comment.created_at.desc(), Comment.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_for_entity(self, entity_type: EntityType, entity_id: int) -> int:
        stmt = select(func.count(Comment.id)).where(
            Comment.entity_type == entity_type,
            Comment.entity_id == entity_id,
            Comment.is_deleted.is_(False),
            Comment.parent_id.is_(None),
        )
        return self.session.exec(stmt).one()

    def list_replies(self, parent_ids: List[int]) -> Sequence[Comment]:
        if not parent_ids:
            return []
        stmt = (
            select(Comment)
            .where(Comment.parent_id.in_(parent_ids), Comment.is_deleted.is_(False))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return self.session.exec(stmt).all()


class CommentLikeRepository(BaseRepository[CommentLike]):
    model = CommentLike

    def get_like(self, comment_id: int, user_id: int) -> Optional[CommentLike]:
        stmt = select(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.user_id == user_id)
        return self.session.exec(stmt).first()

    def count_for_comment(self, comment_id: int) -> int:
        return self.session.exec(select(func.count(CommentLike.id)).where(CommentLike.comment_id == comment_id)).one()

    def counts_for_comments(self, comment_ids: List[int]) -> Dict[int, int]:
        if not comment_ids:
            return {}
        stmt = (
            select(CommentLike.comment_id, func.count(CommentLike.id))
            .where(CommentLike.comment_id.in_(comment_ids))
            .group_by(CommentLike.comment_id)
        )
        return {cid: n for cid, n in self.session.exec(stmt).all()}


class ReportRepository(BaseRepository[Report]):
    model = Report

    def get_by_reporter(self, reporter_id: int, entity_type: EntityType, entity_id: int) -> Optional[Report]:
        stmt = select(Report).where(
            Report.reporter_id == reporter_id,
            Report.entity_type == entity_type,
            Report.entity_id == entity_id,
        )
        return self.session.exec(stmt).first()

    def list_filtered(
        self, *, status: Optional[ReportStatus] = None, offset: int = 0, limit: int = 100
    ) -> Sequence[Report]:
        stmt = select(Report)
        if status is not None:
            stmt = stmt.where(Report.status == status)
        stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_by_status(self, status: ReportStatus) -> int:
        return self.session.exec(select(func.count(Report.id)).where(Report.status == status)).one()
