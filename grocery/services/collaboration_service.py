"""Category collaboration: suggestions, votes and comment threads."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from grocery.database import atomic
from grocery.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from grocery.models import (
    CategoryComment,
    CategorySuggestion,
    CategorySuggestionVote,
    CategoryVote,
    CustomCategory,
)
from grocery.models.enums import (
    CategoryVoteType,
    PermissionLevel,
    SuggestionStatus,
    SuggestionVoteType,
)
from grocery.schemas.activity import (
    CategoryCommentAddedDetails,
    CategoryCommentDeletedDetails,
    CategoryCommentUpdatedDetails,
    CategorySuggestedDetails,
    CategorySuggestionApprovedDetails,
    CategorySuggestionRejectedDetails,
    CategorySuggestionVotedDetails,
    CategoryVotedDetails,
)
from grocery.schemas.collaboration import (
    CategoryVoteTally,
    CommentResponse,
    SuggestionCreate,
    SuggestionResponse,
    SuggestionVoteTally,
)
from grocery.services import realtime
from grocery.services.activity import log_activity
from grocery.services.category_service import CategoryService
from grocery.services.permissions import ListAccess
from grocery.services.realtime import ListEventType
from grocery.tasks import notifications

logger = logging.getLogger(__name__)


def build_comment_tree(comments: list[CategoryComment]) -> list[CommentResponse]:
    """Nest replies under their parents, keeping creation order at every level."""
    nodes = {
        comment.id: CommentResponse(
            id=comment.id,
            category_id=comment.category_id,
            user_id=comment.user_id,
            author_name=comment.author.name if comment.author else None,
            parent_id=comment.parent_id,
            comment_text=comment.comment_text,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            replies=[],
        )
        for comment in comments
    }
    roots = []
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


class CollaborationService:
    """Suggestions, votes and comments on a list's custom categories."""

    def __init__(self, db: Session, category_service: CategoryService | None = None):
        self.db = db
        self.category_service = category_service or CategoryService(db)

    # Suggestions

    def get_suggestion(self, list_id: UUID, suggestion_id: UUID) -> CategorySuggestion:
        suggestion = (
            self.db.query(CategorySuggestion)
            .filter(CategorySuggestion.id == suggestion_id, CategorySuggestion.list_id == list_id)
            .first()
        )
        if suggestion is None:
            raise NotFoundError("Suggestion not found")
        return suggestion

    def suggestion_tallies(self, suggestion_ids: list[UUID]) -> dict[UUID, tuple[int, int]]:
        if not suggestion_ids:
            return {}
        up = func.sum(
            case((CategorySuggestionVote.vote_type == SuggestionVoteType.UPVOTE.value, 1), else_=0)
        )
        down = func.sum(
            case(
                (CategorySuggestionVote.vote_type == SuggestionVoteType.DOWNVOTE.value, 1), else_=0
            )
        )
        rows = (
            self.db.query(CategorySuggestionVote.suggestion_id, up, down)
            .filter(CategorySuggestionVote.suggestion_id.in_(suggestion_ids))
            .group_by(CategorySuggestionVote.suggestion_id)
            .all()
        )
        return {suggestion_id: (int(u or 0), int(d or 0)) for suggestion_id, u, d in rows}

    def to_suggestion_response(self, suggestion: CategorySuggestion) -> SuggestionResponse:
        upvotes, downvotes = self.suggestion_tallies([suggestion.id]).get(suggestion.id, (0, 0))
        return SuggestionResponse.model_validate(suggestion).model_copy(
            update={"upvotes": upvotes, "downvotes": downvotes}
        )

    def list_suggestions(
        self, access: ListAccess, status: SuggestionStatus | None = None
    ) -> list[SuggestionResponse]:
        query = self.db.query(CategorySuggestion).filter(
            CategorySuggestion.list_id == access.list_id
        )
        if status is not None:
            query = query.filter(CategorySuggestion.status == status.value)
        suggestions = query.order_by(CategorySuggestion.created_at.desc()).all()

        tallies = self.suggestion_tallies([s.id for s in suggestions])
        responses = []
        for suggestion in suggestions:
            upvotes, downvotes = tallies.get(suggestion.id, (0, 0))
            responses.append(
                SuggestionResponse.model_validate(suggestion).model_copy(
                    update={"upvotes": upvotes, "downvotes": downvotes}
                )
            )
        return responses

    def suggest_category(self, access: ListAccess, data: SuggestionCreate) -> CategorySuggestion:
        """Propose a new category. Any member may suggest."""
        access.require(PermissionLevel.VIEWER, "suggest categories")
        name = self.category_service.check_name_available(access.list_id, data.name)
        pending = (
            self.db.query(CategorySuggestion.id)
            .filter(
                CategorySuggestion.list_id == access.list_id,
                CategorySuggestion.status == SuggestionStatus.PENDING.value,
                func.lower(CategorySuggestion.name) == name.lower(),
            )
            .first()
        )
        if pending is not None:
            raise ConflictError(f'"{name}" has already been suggested and is awaiting review')

        with atomic(self.db):
            suggestion = CategorySuggestion(
                list_id=access.list_id,
                suggested_by=access.user_id,
                name=name,
                color=data.color,
                icon=data.icon,
                reason=data.reason,
                status=SuggestionStatus.PENDING.value,
            )
            self.db.add(suggestion)
            self.db.flush()
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategorySuggestedDetails(
                    suggestion_id=suggestion.id, category_name=name, reason=data.reason
                ),
            )

        self.db.refresh(suggestion)
        logger.info(f"Category '{name}' suggested on list {access.list_id} by {access.user_id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.SUGGESTION_CREATED, {"id": str(suggestion.id)}
        )
        notifications.dispatch_list_notification(
            access.list_id,
            access.user_id,
            title=f"New category suggestion: {name}",
            body=f"{access.user.name} suggested a category for {access.list.name}",
        )
        return suggestion

    def approve_suggestion(
        self, access: ListAccess, suggestion_id: UUID
    ) -> tuple[CategorySuggestion, CustomCategory]:
        """Turn a pending suggestion into a category. Editor or owner.

        The status change is a conditional update on ``status = 'pending'``;
        if another reviewer got there first nothing is created.
        """
        access.require(PermissionLevel.EDITOR, "review suggestions")
        suggestion = self.get_suggestion(access.list_id, suggestion_id)
        if suggestion.status != SuggestionStatus.PENDING.value:
            raise ConflictError(f"Suggestion has already been {suggestion.status}")
        name = self.category_service.check_name_available(access.list_id, suggestion.name)

        suggested_by = suggestion.suggested_by
        try:
            with atomic(self.db):
                category = CustomCategory(
                    list_id=access.list_id,
                    name=name,
                    color=suggestion.color,
                    icon=suggestion.icon,
                    created_by=suggested_by,
                    last_edited_by=access.user_id,
                )
                self.db.add(category)
                self.db.flush()

                updated = self._mark_reviewed(
                    suggestion_id,
                    SuggestionStatus.APPROVED,
                    access.user_id,
                    created_category_id=category.id,
                )
                if updated != 1:
                    raise ConflictError("Suggestion has already been reviewed")

                log_activity(
                    self.db,
                    access.list_id,
                    access.user_id,
                    CategorySuggestionApprovedDetails(
                        suggestion_id=suggestion_id,
                        category_id=category.id,
                        category_name=name,
                        suggested_by=suggested_by,
                    ),
                )
        except IntegrityError as e:
            raise ConflictError(f'A category named "{name}" already exists in this list') from e

        self.db.refresh(suggestion)
        self.db.refresh(category)
        logger.info(f"Suggestion {suggestion_id} approved as category {category.id}")
        realtime.publish_list_event(
            access.list_id,
            ListEventType.SUGGESTION_REVIEWED,
            {"id": str(suggestion_id), "status": SuggestionStatus.APPROVED.value},
        )
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_CREATED, {"id": str(category.id)}
        )
        notifications.dispatch_list_notification(
            access.list_id,
            access.user_id,
            title=f"Category approved: {name}",
            body=f"{access.user.name} approved the suggested category {name}",
        )
        return suggestion, category

    def reject_suggestion(self, access: ListAccess, suggestion_id: UUID) -> CategorySuggestion:
        access.require(PermissionLevel.EDITOR, "review suggestions")
        suggestion = self.get_suggestion(access.list_id, suggestion_id)
        if suggestion.status != SuggestionStatus.PENDING.value:
            raise ConflictError(f"Suggestion has already been {suggestion.status}")

        name = suggestion.name
        suggested_by = suggestion.suggested_by
        with atomic(self.db):
            updated = self._mark_reviewed(suggestion_id, SuggestionStatus.REJECTED, access.user_id)
            if updated != 1:
                raise ConflictError("Suggestion has already been reviewed")
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategorySuggestionRejectedDetails(
                    suggestion_id=suggestion_id, category_name=name, suggested_by=suggested_by
                ),
            )

        self.db.refresh(suggestion)
        logger.info(f"Suggestion {suggestion_id} rejected")
        realtime.publish_list_event(
            access.list_id,
            ListEventType.SUGGESTION_REVIEWED,
            {"id": str(suggestion_id), "status": SuggestionStatus.REJECTED.value},
        )
        notifications.dispatch_list_notification(
            access.list_id,
            access.user_id,
            title=f"Category suggestion declined: {name}",
            body=f"{access.user.name} declined the suggested category {name}",
        )
        return suggestion

    def _mark_reviewed(
        self,
        suggestion_id: UUID,
        status: SuggestionStatus,
        reviewer_id: UUID,
        created_category_id: UUID | None = None,
    ) -> int:
        """Move a suggestion out of pending. Returns the number of rows changed."""
        return (
            self.db.query(CategorySuggestion)
            .filter(
                CategorySuggestion.id == suggestion_id,
                CategorySuggestion.status == SuggestionStatus.PENDING.value,
            )
            .update(
                {
                    CategorySuggestion.status: status.value,
                    CategorySuggestion.reviewed_by: reviewer_id,
                    CategorySuggestion.reviewed_at: datetime.now(UTC),
                    CategorySuggestion.created_category_id: created_category_id,
                    CategorySuggestion.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )

    def vote_on_suggestion(
        self, access: ListAccess, suggestion_id: UUID, vote_type: SuggestionVoteType
    ) -> SuggestionVoteTally:
        """Upvote or downvote a pending suggestion; voting again replaces the vote."""
        access.require(PermissionLevel.VIEWER, "vote")
        suggestion = self.get_suggestion(access.list_id, suggestion_id)
        if suggestion.status != SuggestionStatus.PENDING.value:
            raise ConflictError("Only pending suggestions can be voted on")

        with atomic(self.db):
            vote = (
                self.db.query(CategorySuggestionVote)
                .filter(
                    CategorySuggestionVote.suggestion_id == suggestion_id,
                    CategorySuggestionVote.user_id == access.user_id,
                )
                .first()
            )
            if vote is None:
                vote = CategorySuggestionVote(
                    suggestion_id=suggestion_id,
                    user_id=access.user_id,
                    vote_type=vote_type.value,
                )
                self.db.add(vote)
            else:
                vote.vote_type = vote_type.value
                vote.updated_at = datetime.now(UTC)
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategorySuggestionVotedDetails(
                    suggestion_id=suggestion_id,
                    category_name=suggestion.name,
                    vote_type=vote_type.value,
                ),
            )

        realtime.publish_list_event(
            access.list_id, ListEventType.VOTES_CHANGED, {"suggestion_id": str(suggestion_id)}
        )
        upvotes, downvotes = self.suggestion_tallies([suggestion_id]).get(suggestion_id, (0, 0))
        return SuggestionVoteTally(
            suggestion_id=suggestion_id, upvotes=upvotes, downvotes=downvotes, user_vote=vote_type
        )

    # Category votes

    def get_category_votes(self, access: ListAccess, category_id: UUID) -> CategoryVoteTally:
        category = self.category_service.get_category(access.list_id, category_id)
        keep, remove = self.category_service.vote_tallies([category.id]).get(category.id, (0, 0))
        user_vote = (
            self.db.query(CategoryVote.vote_type)
            .filter(CategoryVote.category_id == category.id, CategoryVote.user_id == access.user_id)
            .scalar()
        )
        return CategoryVoteTally(
            category_id=category.id,
            keep_votes=keep,
            remove_votes=remove,
            total_votes=keep + remove,
            user_vote=CategoryVoteType(user_vote) if user_vote else None,
        )

    def vote_on_category(
        self, access: ListAccess, category_id: UUID, vote_type: CategoryVoteType
    ) -> CategoryVoteTally:
        """Vote to keep or remove a category; voting again replaces the vote."""
        access.require(PermissionLevel.VIEWER, "vote")
        category = self.category_service.get_category(access.list_id, category_id)
        if category.is_archived:
            raise ValidationError("Archived categories cannot be voted on")

        with atomic(self.db):
            vote = (
                self.db.query(CategoryVote)
                .filter(
                    CategoryVote.category_id == category.id,
                    CategoryVote.user_id == access.user_id,
                )
                .first()
            )
            if vote is None:
                self.db.add(
                    CategoryVote(
                        category_id=category.id,
                        user_id=access.user_id,
                        vote_type=vote_type.value,
                    )
                )
            else:
                vote.vote_type = vote_type.value
                vote.updated_at = datetime.now(UTC)
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryVotedDetails(
                    category_id=category.id,
                    category_name=category.name,
                    vote_type=vote_type.value,
                ),
            )

        logger.info(f"User {access.user_id} voted {vote_type.value} on category {category.id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.VOTES_CHANGED, {"category_id": str(category.id)}
        )
        return self.get_category_votes(access, category.id)

    # Comments

    def get_comment(self, category_id: UUID, comment_id: UUID) -> CategoryComment:
        comment = (
            self.db.query(CategoryComment)
            .filter(CategoryComment.id == comment_id, CategoryComment.category_id == category_id)
            .first()
        )
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def list_comments(self, access: ListAccess, category_id: UUID) -> list[CommentResponse]:
        category = self.category_service.get_category(access.list_id, category_id)
        comments = (
            self.db.query(CategoryComment)
            .options(joinedload(CategoryComment.author))
            .filter(CategoryComment.category_id == category.id)
            .order_by(CategoryComment.created_at, CategoryComment.id)
            .all()
        )
        return build_comment_tree(comments)

    def add_comment(
        self,
        access: ListAccess,
        category_id: UUID,
        comment_text: str,
        parent_id: UUID | None = None,
    ) -> CategoryComment:
        access.require(PermissionLevel.VIEWER, "comment")
        category = self.category_service.get_category(access.list_id, category_id)
        if parent_id is not None:
            parent = (
                self.db.query(CategoryComment)
                .filter(CategoryComment.id == parent_id)
                .first()
            )
            if parent is None or parent.category_id != category.id:
                raise ValidationError("Parent comment must belong to the same category")

        with atomic(self.db):
            comment = CategoryComment(
                category_id=category.id,
                user_id=access.user_id,
                parent_id=parent_id,
                comment_text=comment_text,
            )
            self.db.add(comment)
            self.db.flush()
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryCommentAddedDetails(
                    category_id=category.id,
                    category_name=category.name,
                    comment_id=comment.id,
                    is_reply=parent_id is not None,
                ),
            )

        self.db.refresh(comment)
        logger.info(f"Comment {comment.id} added to category {category.id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.COMMENTS_CHANGED, {"category_id": str(category.id)}
        )
        return comment

    def update_comment(
        self, access: ListAccess, category_id: UUID, comment_id: UUID, comment_text: str
    ) -> CategoryComment:
        """Edit a comment. Only its author may do so."""
        category = self.category_service.get_category(access.list_id, category_id)
        comment = self.get_comment(category.id, comment_id)
        if comment.user_id != access.user_id:
            raise AuthorizationError("Only the author can edit this comment")

        with atomic(self.db):
            comment.comment_text = comment_text
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryCommentUpdatedDetails(
                    category_id=category.id, category_name=category.name, comment_id=comment.id
                ),
            )

        self.db.refresh(comment)
        realtime.publish_list_event(
            access.list_id, ListEventType.COMMENTS_CHANGED, {"category_id": str(category.id)}
        )
        return comment

    def delete_comment(self, access: ListAccess, category_id: UUID, comment_id: UUID) -> None:
        """Delete a comment and its replies.

        Authors may always delete their own comments. Editors may moderate
        others' comments unless the category is locked, in which case only the
        owner can.
        """
        category = self.category_service.get_category(access.list_id, category_id)
        comment = self.get_comment(category.id, comment_id)
        if comment.user_id != access.user_id:
            access.require(PermissionLevel.EDITOR, "delete other members' comments")
            if category.is_locked and not access.permission.is_owner():
                raise AuthorizationError(
                    "This category is locked. Only the list owner can moderate its comments"
                )

        with atomic(self.db):
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryCommentDeletedDetails(
                    category_id=category.id, category_name=category.name, comment_id=comment.id
                ),
            )
            self.db.delete(comment)

        logger.info(f"Comment {comment_id} deleted from category {category.id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.COMMENTS_CHANGED, {"category_id": str(category.id)}
        )
