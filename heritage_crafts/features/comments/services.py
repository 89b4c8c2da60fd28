"""
Commentaires sur les cours, produits et profils artisans, likes et signalements.

La suppression d'un commentaire est logique (is_deleted) : les réponses restent rattachées.
"""

from typing import Dict, List, Optional

from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.comments import Comment
from heritage_crafts.db.models.enums import EntityType, ReportStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.comments import CommentLikeRepository, CommentRepository, ReportRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.security.permissions import Permission, require_permission
from heritage_crafts.features.comments.schemas import (
    CommentCreateIn,
    CommentListOut,
    CommentOut,
    LikeToggleOut,
    ReportCreateIn,
    ReportListOut,
    ReportOut,
    ReportReviewIn,
)

logger = get_logger(__name__)

COMMENTABLE = (EntityType.COURSE, EntityType.PRODUCT, EntityType.CRAFTSMAN_PROFILE)


class CommentService:
    def __init__(
        self,
        *,
        repo: CommentRepository,
        like_repo: CommentLikeRepository,
        report_repo: ReportRepository,
        user_repo: UserRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        craftsman_repo: CraftsmanProfileRepository,
    ):
        self.repo = repo
        self.likes = like_repo
        self.reports = report_repo
        self.users = user_repo
        self.targets = {
            EntityType.COURSE: course_repo,
            EntityType.PRODUCT: product_repo,
            EntityType.CRAFTSMAN_PROFILE: craftsman_repo,
            EntityType.COMMENT: repo,
        }

    # --------------- Helpers ---------------
    def _ensure_target_exists(self, entity_type: EntityType, entity_id: int) -> None:
        target = self.targets[entity_type].get(entity_id)
        if target is None or getattr(target, "is_deleted", False):
            raise NotFoundError(f"{entity_type.value.replace('_', ' ').capitalize()} not found")

    def get_entity(self, comment_id: int) -> Comment:
        comment = self.repo.get(comment_id)
        if not comment or comment.is_deleted:
            raise NotFoundError("Comment not found")
        return comment

    def _ensure_owner_or_admin(self, comment: Comment, user: User) -> None:
        if comment.user_id != user.id and not user.is_admin:
            raise ForbiddenError("Forbidden")

    def _outputs(self, comments: List[Comment]) -> List[CommentOut]:
        ids = [c.id for c in comments]
        like_counts = self.likes.counts_for_comments(ids)
        names: Dict[int, Optional[str]] = {}
        out = []
        for c in comments:
            if c.user_id not in names:
                author = self.users.get(c.user_id)
                names[c.user_id] = author.name if author else None
            item = CommentOut.model_validate(c)
            item.user_name = names[c.user_id]
            item.like_count = like_counts.get(c.id, 0)
            out.append(item)
        return out

    # --------------- Commentaires ---------------
    def create(self, user: User, payload: CommentCreateIn) -> CommentOut:
        if payload.entity_type not in COMMENTABLE:
            raise InvalidOperationError("Comments are not supported on this entity")
        self._ensure_target_exists(payload.entity_type, payload.entity_id)

        if payload.parent_id is not None:
            parent = self.get_entity(payload.parent_id)
            if parent.entity_type != payload.entity_type or parent.entity_id != payload.entity_id:
                raise InvalidOperationError("Parent comment belongs to another entity")

        comment = self.repo.create(user_id=user.id, **payload.model_dump())
        logger.info(
            "Comment %s created on %s %s by user %s",
            comment.id, comment.entity_type.value, comment.entity_id, user.id,
        )
        return self._outputs([comment])[0]

    def update(self, comment_id: int, user: User, content: str) -> CommentOut:
        comment = self.get_entity(comment_id)
        self._ensure_owner_or_admin(comment, user)
        comment = self.repo.update(comment, content=content)
        return self._outputs([comment])[0]

    def delete(self, comment_id: int, user: User) -> None:
        comment = self.get_entity(comment_id)
        self._ensure_owner_or_admin(comment, user)
        self.repo.update(comment, is_deleted=True)

    def list_for_entity(
        self,
        entity_type: EntityType,
        entity_id: int,
        *,
        include_replies: bool = True,
        offset: int = 0,
        limit: int = 50,
    ) -> CommentListOut:
        top = list(self.repo.list_for_entity(entity_type, entity_id, offset=offset, limit=limit))
        items = self._outputs(top)

        if include_replies and top:
            replies = self._outputs(list(self.repo.list_replies([c.id for c in top])))
            by_parent: Dict[int, List[CommentOut]] = {}
            for r in replies:
                by_parent.setdefault(r.parent_id, []).append(r)
            for item in items:
                item.replies = by_parent.get(item.id, [])

        return CommentListOut(items=items, total=self.repo.count_for_entity(entity_type, entity_id))

    def toggle_like(self, comment_id: int, user: User) -> LikeToggleOut:
        comment = self.get_entity(comment_id)
        existing = self.likes.get_like(comment.id, user.id)
        if existing:
            self.likes.delete(existing)
            liked = False
        else:
            self.likes.create(comment_id=comment.id, user_id=user.id)
            liked = True
        return LikeToggleOut(liked=liked, like_count=self.likes.count_for_comment(comment.id))

    # --------------- Signalements ---------------
    def report(self, user: User, payload: ReportCreateIn) -> ReportOut:
        self._ensure_target_exists(payload.entity_type, payload.entity_id)
        if self.reports.get_by_reporter(user.id, payload.entity_type, payload.entity_id):
            raise ConflictError("You have already reported this content")
        report = self.reports.create(reporter_id=user.id, **payload.model_dump())
        logger.info("Report %s filed on %s %s", report.id, report.entity_type.value, report.entity_id)
        return ReportOut.model_validate(report)

    def list_reports(
        self, actor: User, *, status: Optional[ReportStatus] = None, offset: int = 0, limit: int = 100
    ) -> ReportListOut:
        require_permission(actor, Permission.MODERATE_CONTENT)
        rows = self.reports.list_filtered(status=status, offset=offset, limit=limit)
        return ReportListOut(items=[ReportOut.model_validate(r) for r in rows])

    def review_report(self, report_id: int, actor: User, payload: ReportReviewIn) -> ReportOut:
        require_permission(actor, Permission.MODERATE_CONTENT)
        report = self.reports.get(report_id)
        if not report:
            raise NotFoundError("Report not found")
        report = self.reports.update(
            report, status=payload.status, reviewed_by=actor.id, review_note=payload.note
        )
        return ReportOut.model_validate(report)
