# app/services/share_service.py
"""
공유 링크 서비스

링크 상태: 활성 -> (usage_count == max_uses) 소진 / (now >= expires_at) 만료 / 삭제
알 수 없는 토큰, 만료, 소진, 비활성 링크는 모두 같은 404로 응답한다.
보호자 전용 접근 토큰은 사용 횟수 없이 is_shared 아이템만 보여준다.
"""
import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from app.core.errors import NotFound, Unauthorized
from app.core.i18n import DEFAULT_LOCALE, tr
from app.core.logger import audit
from app.core.security import hash_password, verify_password
from app.models.share import ShareLink, ShareLinkType
from app.services.store import Store

TOKEN_LENGTH = 32
MAX_NAME_LENGTH = 100
SHARE_PATH = "/compartilhado"


def generate_token() -> str:
    """32 hex 문자 토큰 (256비트 랜덤을 sha256 후 절단)"""
    return hashlib.sha256(secrets.token_bytes(32)).hexdigest()[:TOKEN_LENGTH]


def normalize_link_type(value: str | None) -> str:
    """모르는 타입은 normal"""
    try:
        return ShareLinkType(value).value
    except ValueError:
        return ShareLinkType.NORMAL.value


def build_share_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{SHARE_PATH}/{token}"


def guardian_card(guardian) -> dict:
    """공유 화면용 보호자 정보 (PIN 등 내부 필드 제외)"""
    return {
        "name": guardian.name,
        "email": guardian.email,
        "phone": guardian.phone,
        "relationship": guardian.relationship,
    }


@dataclass(frozen=True)
class PinRequired:
    """PIN이 필요한 링크 (내용 없음)"""
    link_type: str
    requires_pin: bool = True


@dataclass
class SharedView:
    """공유 링크로 보이는 내용"""
    link_type: str
    owner_name: str
    items: list[dict]
    guardians: list[dict] = field(default_factory=list)
    owner_email: str | None = None
    message: str | None = None
    guardian_name: str | None = None


class ShareLinkService:
    def __init__(self, store: Store, locale: str = DEFAULT_LOCALE):
        self.store = store
        self.locale = locale

    # ===== 소유자 작업 =====

    def create_link(
        self,
        owner_id: str,
        name: str | None = None,
        type: str | None = None,
        categories: list[str] | None = None,
        pin: str | None = None,
        expires_in_days: int = 0,
        max_uses: int = 0,
        guardian_ids: list[str] | None = None,
        guardian_id: str | None = None,
    ) -> ShareLink:
        """공유 링크 생성 (guardian_id는 구버전 클라이언트용 단일 지정)"""
        name = (name or "").strip() or tr(self.locale, "share.default_name")

        expires_at = None
        if expires_in_days and expires_in_days > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

        guardian_ids = [g for g in (guardian_ids or []) if g]
        if guardian_id and not guardian_ids:
            guardian_ids = [guardian_id]

        link = ShareLink(
            user_id=owner_id,
            token=generate_token(),
            type=normalize_link_type(type),
            name=name[:MAX_NAME_LENGTH],
            categories=sorted({c.strip() for c in (categories or []) if c and c.strip()}),
            guardian_ids=guardian_ids,
            guardian_id=guardian_ids[0] if len(guardian_ids) == 1 else None,
            pin_hash=hash_password(pin) if pin else None,
            expires_at=expires_at,
            max_uses=max(max_uses or 0, 0),
            usage_count=0,
            is_active=True,
        )
        link = self.store.create_share_link(link)
        audit("share.create", "공유 링크 생성", user_id=owner_id, link_id=link.id, type=link.type)
        return link

    def list_links(self, owner_id: str) -> list[ShareLink]:
        return self.store.get_share_links_by_user(owner_id)

    def delete_link(self, owner_id: str, link_id: str) -> None:
        """하드 삭제 (소유자가 아니면 NotFound)"""
        if not self.store.delete_share_link(owner_id, link_id):
            raise NotFound("share.not_found")
        audit("share.delete", "공유 링크 삭제", user_id=owner_id, link_id=link_id)

    # ===== 공개 접근 =====

    def _get_usable_link(self, token: str) -> ShareLink:
        link = self.store.get_share_link_by_token(token) if token else None
        if link is None or not link.is_usable():
            raise NotFound("share.link_expired")
        return link

    def resolve_link(self, token: str, ip: str | None = None, user_agent: str | None = None) -> PinRequired | SharedView:
        """토큰으로 링크 조회. PIN이 있으면 PinRequired만 반환"""
        link = self._get_usable_link(token)
        if link.requires_pin:
            return PinRequired(link_type=link.type)
        return self._open(link, ip, user_agent)

    def verify_pin(self, token: str, pin: str, ip: str | None = None, user_agent: str | None = None) -> SharedView:
        """PIN 확인 후 내용 반환. 실패 시 접근 기록 없음"""
        link = self._get_usable_link(token)
        if not link.requires_pin or not pin or not verify_password(pin, link.pin_hash):
            audit("share.pin_failed", "공유 링크 PIN 실패", link_id=link.id, ip=ip)
            raise Unauthorized("share.invalid_pin")
        return self._open(link, ip, user_agent)

    def _open(self, link: ShareLink, ip: str | None, user_agent: str | None) -> SharedView:
        """사용 횟수 증가 + 접근 기록 후 내용 생성"""
        link_id = link.id
        view = self.build_view(link)

        # 조회와 증가 사이에 소진될 수 있음
        if not self.store.increment_share_link_usage(link_id):
            raise NotFound("share.link_expired")
        self.store.record_share_link_access(link_id, ip, user_agent)

        audit("share.access", "공유 링크 접근", link_id=link_id, ip=ip)
        return view

    # ===== 내용 투영 =====

    def build_view(self, link: ShareLink) -> SharedView:
        """링크 타입/카테고리/보호자 필터에 따른 내용"""
        owner = self.store.get_user_by_id(link.user_id)
        if owner is None:
            raise NotFound("share.link_expired")

        owner_name = owner.name or owner.email.split("@")[0]
        categories = set(link.categories or [])
        items = [
            item for item in self.store.get_box_items(owner.id)
            if not categories or item["category"] in categories
        ]

        view = SharedView(link_type=link.type, owner_name=owner_name, items=items)

        # 보호자 필터가 있으면 타입과 무관하게 해당 보호자만 표시
        guardian_ids = set(link.guardian_ids or [])
        if guardian_ids:
            guardians = [g for g in self.store.list_guardians(owner.id) if g.id in guardian_ids]
            view.guardians = [guardian_card(g) for g in guardians]
            if len(guardians) == 1:
                view.guardian_name = guardians[0].name

        if link.type == ShareLinkType.MEMORIAL.value:
            if not guardian_ids:
                view.guardians = [guardian_card(g) for g in self.store.list_guardians(owner.id)]
            view.owner_email = owner.email
            view.message = tr(self.locale, "share.memorial_message", name=owner_name)
        elif link.type == ShareLinkType.EMERGENCY.value:
            view.message = tr(self.locale, "share.emergency_message", name=owner_name)

        return view


# ===== 보호자 전용 접근 =====

@dataclass(frozen=True)
class GuardianPinRequired:
    """PIN이 설정된 보호자 (이름만 노출)"""
    guardian_name: str
    relationship: str | None
    owner_name: str
    requires_pin: bool = True


@dataclass
class GuardianView:
    """보호자에게 보이는 내용 (공개 아이템만)"""
    guardian_name: str
    relationship: str | None
    owner_name: str
    owner_email: str
    access_type: str
    items: list[dict]
    accessed_at: datetime


class GuardianAccessService:
    """보호자 접근 토큰으로 is_shared 아이템 조회"""

    def __init__(self, store: Store):
        self.store = store

    def _get_guardian_and_owner(self, token: str):
        guardian = self.store.get_guardian_by_access_token(token)
        owner = self.store.get_user_by_id(guardian.user_id) if guardian else None
        if owner is None:
            raise NotFound("share.not_found")
        return guardian, owner

    def resolve(self, token: str, ip: str | None = None) -> GuardianPinRequired | GuardianView:
        guardian, owner = self._get_guardian_and_owner(token)
        if guardian.has_pin:
            return GuardianPinRequired(
                guardian_name=guardian.name,
                relationship=guardian.relationship,
                owner_name=owner.name,
            )
        return self._open(guardian, owner, ip)

    def verify_pin(self, token: str, pin: str, ip: str | None = None) -> GuardianView:
        """PIN이 없는 보호자에게 PIN을 보내도 실패"""
        guardian, owner = self._get_guardian_and_owner(token)
        if not guardian.has_pin or not pin or not verify_password(pin, guardian.access_pin_hash):
            audit("guardian.pin_failed", "보호자 PIN 실패", guardian_id=guardian.id, ip=ip)
            raise Unauthorized("share.invalid_pin")
        return self._open(guardian, owner, ip)

    def _open(self, guardian, owner, ip: str | None) -> GuardianView:
        view = GuardianView(
            guardian_name=guardian.name,
            relationship=guardian.relationship,
            owner_name=owner.name or owner.email.split("@")[0],
            owner_email=owner.email,
            access_type=guardian.access_type,
            items=self.store.list_shared_items(owner.id),
            accessed_at=datetime.now(timezone.utc),
        )
        audit(
            "guardian.access", "보호자 접근",
            user_id=owner.id, guardian_id=guardian.id, items=len(view.items), ip=ip
        )
        return view
