"""
Friendship State Machine

두 사용자 간 관계(친구 요청/수락/거절/차단)의 상태 전이 규칙을 한 곳에 모아둔 모듈.
서비스 계층은 현재 상태와 호출자의 역할만 넘기고, 허용 여부와 결과 상태는 여기서 결정합니다.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from app.core.errors import (
    AuthorizationException,
    BadRequestException,
    ConflictException,
    friendship_not_found_error,
)


class FriendshipStatus(str, enum.Enum):
    """저장되는 관계 상태"""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    BLOCKED = "BLOCKED"


class FriendshipAction(str, enum.Enum):
    """관계에 가할 수 있는 액션"""
    REQUEST = "request"
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    REMOVE = "remove"
    BLOCK = "block"
    UNBLOCK = "unblock"

    @classmethod
    def from_response(cls, action: str) -> "FriendshipAction":
        """친구 요청 응답 문자열(accept/reject)을 액션으로 변환"""
        if action == cls.ACCEPT.value:
            return cls.ACCEPT
        if action == cls.REJECT.value:
            return cls.REJECT
        raise BadRequestException('Invalid action. Use "accept" or "reject"')


class Role(str, enum.Enum):
    """저장된 행 기준 호출자의 역할"""
    SENDER = "sender"
    RECEIVER = "receiver"
    OUTSIDER = "outsider"

    @classmethod
    def of(cls, caller_id: int, sender_id: int, receiver_id: int) -> "Role":
        if caller_id == sender_id:
            return cls.SENDER
        if caller_id == receiver_id:
            return cls.RECEIVER
        return cls.OUTSIDER


class RelationshipLabel(str, enum.Enum):
    """조회자 관점의 관계 상태 라벨"""
    SELF = "self"
    NONE = "none"
    FRIENDS = "friends"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    BLOCKED_BY_YOU = "blocked_by_you"
    BLOCKED = "blocked"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Transition:
    """
    상태 전이 결과

    status가 None이면 행을 삭제합니다 (관계 없음 상태로 복귀).
    reassign이 True이면 호출자를 sender로 방향을 다시 지정합니다.
    """
    status: Optional[FriendshipStatus]
    reassign: bool = False

    @property
    def deletes(self) -> bool:
        return self.status is None


DELETE = Transition(status=None)


def transition(
    current: Optional[FriendshipStatus],
    action: FriendshipAction,
    role: Role = Role.OUTSIDER
) -> Transition:
    """
    (현재 상태, 액션, 호출자 역할)로부터 다음 상태를 결정합니다.

    Args:
        current: 현재 저장된 상태 (행이 없으면 None)
        action: 적용할 액션
        role: 저장된 행 기준 호출자의 역할 (행이 없으면 무시)

    Returns:
        Transition: 결과 상태와 방향 재지정 여부

    Raises:
        ResourceNotFoundException: 대상 관계가 없음
        AuthorizationException: 호출자가 해당 액션의 당사자가 아님
        ConflictException: 현재 상태가 요청을 이미 충족하거나 배제함
    """
    if action == FriendshipAction.REQUEST:
        if current is None:
            return Transition(FriendshipStatus.PENDING, reassign=True)
        if current == FriendshipStatus.PENDING:
            raise ConflictException("Request already pending")
        if current == FriendshipStatus.ACCEPTED:
            raise ConflictException("Already friends")
        if current == FriendshipStatus.BLOCKED:
            raise AuthorizationException("Cannot send request")
        # 거절된 요청은 같은 행을 재사용해 다시 대기 상태로
        return Transition(FriendshipStatus.PENDING, reassign=True)

    if action in (FriendshipAction.ACCEPT, FriendshipAction.REJECT):
        _require_respondable(current, role)
        if action == FriendshipAction.ACCEPT:
            return Transition(FriendshipStatus.ACCEPTED)
        return Transition(FriendshipStatus.REJECTED)

    if action == FriendshipAction.CANCEL:
        if current is None:
            raise friendship_not_found_error()
        if role != Role.SENDER:
            raise AuthorizationException("Not authorized to cancel")
        if current != FriendshipStatus.PENDING:
            raise ConflictException("Only pending requests can be cancelled")
        return DELETE

    if action == FriendshipAction.REMOVE:
        if current != FriendshipStatus.ACCEPTED or role == Role.OUTSIDER:
            raise friendship_not_found_error("Friendship not found")
        return DELETE

    if action == FriendshipAction.BLOCK:
        # 기존 상태와 무관하게 차단으로 덮어쓰고 차단한 사람을 sender로
        return Transition(FriendshipStatus.BLOCKED, reassign=True)

    if action == FriendshipAction.UNBLOCK:
        if current != FriendshipStatus.BLOCKED or role != Role.SENDER:
            raise friendship_not_found_error("Block relationship not found")
        return DELETE

    raise BadRequestException(f"Unsupported action: {action}")


def _require_respondable(current: Optional[FriendshipStatus], role: Role) -> None:
    """응답 가능한 요청인지 확인 (존재 -> 수신자 -> 대기 중 순서)"""
    if current is None:
        raise friendship_not_found_error()
    if role != Role.RECEIVER:
        raise AuthorizationException("Not authorized to respond")
    if current != FriendshipStatus.PENDING:
        raise ConflictException("Request already handled")


def respond_transition(
    current: Optional[FriendshipStatus],
    role: Role,
    response: str
) -> Tuple[FriendshipAction, Transition]:
    """
    친구 요청 응답 문자열을 검증하고 전이를 결정합니다.

    요청 존재 여부, 수신자 여부, 대기 상태를 먼저 확인한 뒤에
    응답 문자열(accept/reject)을 검사합니다.
    """
    _require_respondable(current, role)
    action = FriendshipAction.from_response(response)
    return action, transition(current, action, role)


def status_label(
    viewer_id: int,
    other_id: int,
    status: Optional[FriendshipStatus] = None,
    sender_id: Optional[int] = None
) -> RelationshipLabel:
    """조회자 관점에서 관계 상태 라벨을 계산합니다."""
    if viewer_id == other_id:
        return RelationshipLabel.SELF
    if status is None:
        return RelationshipLabel.NONE
    if status == FriendshipStatus.ACCEPTED:
        return RelationshipLabel.FRIENDS
    if status == FriendshipStatus.PENDING:
        if sender_id == viewer_id:
            return RelationshipLabel.PENDING_SENT
        return RelationshipLabel.PENDING_RECEIVED
    if status == FriendshipStatus.BLOCKED:
        if sender_id == viewer_id:
            return RelationshipLabel.BLOCKED_BY_YOU
        return RelationshipLabel.BLOCKED
    return RelationshipLabel.REJECTED
