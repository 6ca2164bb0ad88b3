# app/services/store.py
"""
영속 계층 (SQLAlchemy 세션 래퍼)

- 요청마다 get_db()로 받은 세션으로 생성
- 박스 아이템의 title / content / recipient는 FieldCipher로 암호화 저장
- 공유 링크 사용 횟수는 조건부 UPDATE로 원자적으로 증가
"""
import base64
import os
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.crypto import SALT_LENGTH, DecryptionFailed, FieldCipher
from app.core.errors import Conflict, InternalError
from app.core.logger import logger
from app.models.analytics import AnalyticsEvent
from app.models.box_item import BoxItem
from app.models.crypto_meta import CryptoMeta
from app.models.guardian import Guardian
from app.models.share import ShareLink, ShareLinkAccess, as_utc
from app.models.user import User
from app.models.user_settings import UserSettings

FIELD_SALT_KEY = "field_salt"
ENCRYPTED_ITEM_FIELDS = ("title", "content", "recipient")
GUARDIAN_FIELDS = ("name", "email", "phone", "relationship", "role", "notes", "access_type")
SETTINGS_FIELDS = ("emergency_protocol_enabled", "notifications_enabled", "theme")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Store:
    def __init__(self, db: Session, cipher: FieldCipher | None = None):
        self.db = db
        self.cipher = cipher

    # ===== 암호화 메타 =====

    def load_or_create_field_salt(self) -> bytes:
        """저장된 salt 로드, 없으면 생성 후 저장"""
        meta = self.db.get(CryptoMeta, FIELD_SALT_KEY)
        if meta:
            return base64.b64decode(meta.value)

        salt = os.urandom(SALT_LENGTH)
        self.db.add(CryptoMeta(key=FIELD_SALT_KEY, value=base64.b64encode(salt).decode("ascii")))
        try:
            self.db.commit()
        except IntegrityError:
            # 다른 워커가 먼저 저장함
            self.db.rollback()
            meta = self.db.get(CryptoMeta, FIELD_SALT_KEY)
            return base64.b64decode(meta.value)

        logger.info("새 필드 암호화 salt 생성")
        return salt

    # ===== 유저 =====

    def create_user(self, email: str, name: str, hashed_password: str, locale: str | None = None) -> User:
        """이메일 가입 유저 생성 (중복이면 Conflict)"""
        user = User(
            email=normalize_email(email),
            name=name,
            hashed_password=hashed_password,
            provider="email",
            locale=locale,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("auth.email_exists")
        self.db.refresh(user)
        return user

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def get_user_by_id(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def delete_user(self, user_id: str) -> bool:
        """유저와 모든 데이터 삭제 (분석 이벤트는 익명화)"""
        user = self.get_user_by_id(user_id)
        if not user:
            return False

        link_ids = select(ShareLink.id).where(ShareLink.user_id == user_id)
        self.db.query(ShareLinkAccess)\
            .filter(ShareLinkAccess.share_link_id.in_(link_ids))\
            .delete(synchronize_session=False)
        for model in (ShareLink, BoxItem, Guardian, UserSettings):
            self.db.query(model).filter(model.user_id == user_id).delete(synchronize_session=False)
        self.db.query(AnalyticsEvent)\
            .filter(AnalyticsEvent.user_id == user_id)\
            .update({AnalyticsEvent.user_id: None}, synchronize_session=False)

        self.db.delete(user)
        self.db.commit()
        return True

    def export_user_data(self, user_id: str) -> dict:
        """내 데이터 내보내기 (아이템은 복호화된 상태)"""
        return {
            "items": self.get_box_items(user_id),
            "guardians": self.list_guardians(user_id),
            "share_links": self.get_share_links_by_user(user_id),
            "settings": self.get_settings(user_id),
            "exported_at": datetime.now(timezone.utc),
        }

    def create_or_update_social_user(
        self,
        provider: str,
        provider_id: str,
        email: str,
        name: str,
        avatar_url: str | None = None,
    ) -> User:
        """소셜 로그인 유저 upsert (provider 우선, 다음 이메일로 연결)"""
        user = self.db.query(User).filter(
            User.provider == provider,
            User.provider_id == provider_id
        ).first()

        if user:
            if name:
                user.name = name
            if avatar_url:
                user.avatar_url = avatar_url
        else:
            user = self.get_user_by_email(email)
            if user:
                # 기존 이메일 계정에 소셜 로그인 연결
                user.provider = provider
                user.provider_id = provider_id
                if avatar_url:
                    user.avatar_url = avatar_url
            else:
                user = User(
                    email=normalize_email(email),
                    name=name or email.split("@")[0],
                    hashed_password="",
                    provider=provider,
                    provider_id=provider_id,
                    avatar_url=avatar_url,
                )
                self.db.add(user)

        self.db.commit()
        self.db.refresh(user)
        return user

    # ===== 보호자 =====

    def list_guardians(self, user_id: str) -> list[Guardian]:
        return self.db.query(Guardian)\
            .filter(Guardian.user_id == user_id)\
            .order_by(Guardian.created_at)\
            .all()

    def get_guardian(self, user_id: str, guardian_id: str) -> Guardian | None:
        return self.db.query(Guardian).filter(
            Guardian.id == guardian_id,
            Guardian.user_id == user_id
        ).first()

    def add_guardian(self, user_id: str, pin_hash: str | None = None, **fields) -> Guardian:
        guardian = Guardian(user_id=user_id, access_pin_hash=pin_hash)
        for key in GUARDIAN_FIELDS:
            if fields.get(key) is not None:
                setattr(guardian, key, fields[key])
        self.db.add(guardian)
        self.db.commit()
        self.db.refresh(guardian)
        return guardian

    def update_guardian(
        self,
        user_id: str,
        guardian_id: str,
        pin_hash: str | None = None,
        **fields
    ) -> Guardian | None:
        """None인 필드는 그대로 둠"""
        guardian = self.get_guardian(user_id, guardian_id)
        if not guardian:
            return None

        for key in GUARDIAN_FIELDS:
            if fields.get(key) is not None:
                setattr(guardian, key, fields[key])
        if pin_hash is not None:
            guardian.access_pin_hash = pin_hash

        self.db.commit()
        self.db.refresh(guardian)
        return guardian

    def get_guardian_by_access_token(self, token: str) -> Guardian | None:
        if not token:
            return None
        return self.db.query(Guardian).filter(Guardian.access_token == token).first()

    def delete_guardian(self, user_id: str, guardian_id: str) -> bool:
        guardian = self.get_guardian(user_id, guardian_id)
        if not guardian:
            return False
        self.db.delete(guardian)
        self.db.commit()
        return True

    # ===== 박스 아이템 =====

    def _require_cipher(self) -> FieldCipher:
        if self.cipher is None:
            raise InternalError()
        return self.cipher

    def _item_to_dict(self, item: BoxItem) -> dict:
        """복호화된 아이템 (ORM 객체는 건드리지 않음)"""
        cipher = self._require_cipher()
        try:
            decrypted = {name: cipher.decrypt_optional(getattr(item, name)) for name in ENCRYPTED_ITEM_FIELDS}
        except DecryptionFailed:
            logger.error(f"박스 아이템 복호화 실패: {item.id}")
            raise InternalError()

        return {
            "id": item.id,
            "user_id": item.user_id,
            "type": item.type,
            "category": item.category,
            "is_important": bool(item.is_important),
            "is_shared": bool(item.is_shared),
            "created_at": as_utc(item.created_at),
            "updated_at": as_utc(item.updated_at),
            **decrypted,
        }

    def get_box_items(self, user_id: str) -> list[dict]:
        items = self.db.query(BoxItem)\
            .filter(BoxItem.user_id == user_id)\
            .order_by(BoxItem.created_at.desc())\
            .all()
        return [self._item_to_dict(item) for item in items]

    def list_shared_items(self, user_id: str) -> list[dict]:
        """보호자에게 공개한 아이템만 (is_shared)"""
        items = self.db.query(BoxItem)\
            .filter(BoxItem.user_id == user_id, BoxItem.is_shared == True)\
            .order_by(BoxItem.created_at.desc())\
            .all()
        return [self._item_to_dict(item) for item in items]

    def get_box_item(self, user_id: str, item_id: str) -> dict | None:
        item = self.db.query(BoxItem).filter(
            BoxItem.id == item_id,
            BoxItem.user_id == user_id
        ).first()
        return self._item_to_dict(item) if item else None

    def create_box_item(
        self,
        user_id: str,
        title: str,
        type: str = "info",
        content: str | None = None,
        category: str | None = None,
        recipient: str | None = None,
        is_important: bool = False,
        is_shared: bool = False,
    ) -> dict:
        cipher = self._require_cipher()
        item = BoxItem(
            user_id=user_id,
            type=type,
            title=cipher.encrypt(title),
            content=cipher.encrypt_optional(content),
            recipient=cipher.encrypt_optional(recipient),
            category=category,
            is_important=is_important,
            is_shared=is_shared,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return self._item_to_dict(item)

    def update_box_item(self, user_id: str, item_id: str, **changes) -> dict | None:
        """None이 아닌 필드만 갱신"""
        cipher = self._require_cipher()
        item = self.db.query(BoxItem).filter(
            BoxItem.id == item_id,
            BoxItem.user_id == user_id
        ).first()
        if not item:
            return None

        for key, value in changes.items():
            if value is None:
                continue
            if key in ENCRYPTED_ITEM_FIELDS:
                value = cipher.encrypt_optional(value)
            setattr(item, key, value)

        self.db.commit()
        self.db.refresh(item)
        return self._item_to_dict(item)

    def delete_box_item(self, user_id: str, item_id: str) -> bool:
        item = self.db.query(BoxItem).filter(
            BoxItem.id == item_id,
            BoxItem.user_id == user_id
        ).first()
        if not item:
            return False
        self.db.delete(item)
        self.db.commit()
        return True

    # ===== 공유 링크 =====

    def create_share_link(self, link: ShareLink) -> ShareLink:
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def get_share_links_by_user(self, user_id: str) -> list[ShareLink]:
        return self.db.query(ShareLink)\
            .filter(ShareLink.user_id == user_id)\
            .order_by(ShareLink.created_at.desc())\
            .all()

    def get_share_link_by_token(self, token: str) -> ShareLink | None:
        return self.db.query(ShareLink).filter(ShareLink.token == token).first()

    def delete_share_link(self, user_id: str, link_id: str) -> bool:
        """소유자 확인 후 삭제 (접근 기록도 함께)"""
        link = self.db.query(ShareLink).filter(
            ShareLink.id == link_id,
            ShareLink.user_id == user_id
        ).first()
        if not link:
            return False

        self.db.query(ShareLinkAccess)\
            .filter(ShareLinkAccess.share_link_id == link.id)\
            .delete(synchronize_session=False)
        self.db.delete(link)
        self.db.commit()
        return True

    def increment_share_link_usage(self, link_id: str, now: datetime | None = None) -> bool:
        """
        사용 가능한 링크일 때만 usage_count + 1 (compare-and-swap)

        동시에 접근해도 usage_count는 max_uses를 넘지 않는다.
        반환값이 False면 그 사이에 소진/만료/비활성화된 것.
        """
        now = now or datetime.now(timezone.utc)
        result = self.db.execute(
            update(ShareLink)
            .where(
                ShareLink.id == link_id,
                ShareLink.is_active == True,
                or_(ShareLink.expires_at == None, ShareLink.expires_at > now),
                or_(ShareLink.max_uses == 0, ShareLink.usage_count < ShareLink.max_uses),
            )
            .values(usage_count=ShareLink.usage_count + 1, last_used_at=now)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def record_share_link_access(self, link_id: str, ip_address: str | None, user_agent: str | None) -> ShareLinkAccess:
        access = ShareLinkAccess(
            share_link_id=link_id,
            ip_address=(ip_address or "")[:64],
            user_agent=(user_agent or "")[:512],
        )
        self.db.add(access)
        self.db.commit()
        return access

    def count_share_link_accesses(self, link_id: str) -> int:
        return self.db.query(func.count(ShareLinkAccess.id))\
            .filter(ShareLinkAccess.share_link_id == link_id)\
            .scalar()

    # ===== 설정 =====

    def get_settings(self, user_id: str) -> UserSettings:
        """없으면 기본값으로 생성"""
        user_settings = self.db.get(UserSettings, user_id)
        if user_settings is None:
            user_settings = UserSettings(
                user_id=user_id,
                emergency_protocol_enabled=False,
                notifications_enabled=True,
                theme="light",
            )
            self.db.add(user_settings)
            self.db.commit()
            self.db.refresh(user_settings)
        return user_settings

    def update_settings(self, user_id: str, **fields) -> UserSettings:
        user_settings = self.get_settings(user_id)
        for key in SETTINGS_FIELDS:
            if fields.get(key) is not None:
                setattr(user_settings, key, fields[key])
        self.db.commit()
        self.db.refresh(user_settings)
        return user_settings

    # ===== 분석 =====

    def track_event(
        self,
        event_type: str,
        user_id: str | None = None,
        page: str | None = None,
        details: dict | None = None,
    ) -> AnalyticsEvent:
        event = AnalyticsEvent(
            user_id=user_id,
            event_type=event_type,
            page=page,
            details=details or {},
        )
        self.db.add(event)
        self.db.commit()
        return event

    def get_analytics_summary(self, now: datetime | None = None) -> dict:
        """관리자 대시보드 요약"""
        now = now or datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = today - timedelta(days=7)

        events_by_type = dict(
            self.db.query(AnalyticsEvent.event_type, func.count(AnalyticsEvent.id))
            .group_by(AnalyticsEvent.event_type)
            .all()
        )

        return {
            "total_users": self.db.query(func.count(User.id)).scalar(),
            "new_users_today": self.db.query(func.count(User.id)).filter(User.created_at >= today).scalar(),
            "new_users_this_week": self.db.query(func.count(User.id)).filter(User.created_at >= week_ago).scalar(),
            "active_today": self.db.query(func.count(func.distinct(AnalyticsEvent.user_id)))
                .filter(AnalyticsEvent.created_at >= today, AnalyticsEvent.user_id != None)
                .scalar(),
            "active_this_week": self.db.query(func.count(func.distinct(AnalyticsEvent.user_id)))
                .filter(AnalyticsEvent.created_at >= week_ago, AnalyticsEvent.user_id != None)
                .scalar(),
            "total_items": self.db.query(func.count(BoxItem.id)).scalar(),
            "items_created_today": self.db.query(func.count(BoxItem.id)).filter(BoxItem.created_at >= today).scalar(),
            "total_guardians": self.db.query(func.count(Guardian.id)).scalar(),
            "total_share_links": self.db.query(func.count(ShareLink.id)).scalar(),
            "events_today": self.db.query(func.count(AnalyticsEvent.id))
                .filter(AnalyticsEvent.created_at >= today)
                .scalar(),
            "events_by_type": events_by_type,
        }

    def get_recent_events(self, limit: int = 50) -> list[AnalyticsEvent]:
        return self.db.query(AnalyticsEvent)\
            .order_by(AnalyticsEvent.created_at.desc())\
            .limit(limit)\
            .all()

    def get_daily_stats(self, days: int = 7, now: datetime | None = None) -> list[dict]:
        """최근 N일 일별 이벤트 수 / 활성 유저 수 (오래된 날짜부터)"""
        now = now or datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start = today - timedelta(days=days - 1)

        rows = self.db.query(AnalyticsEvent.created_at, AnalyticsEvent.user_id)\
            .filter(AnalyticsEvent.created_at >= start)\
            .all()

        events = Counter()
        users: dict[str, set] = {}
        for created_at, user_id in rows:
            day = as_utc(created_at).date().isoformat()
            events[day] += 1
            if user_id:
                users.setdefault(day, set()).add(user_id)

        stats = []
        for offset in range(days):
            day = (start + timedelta(days=offset)).date().isoformat()
            stats.append({
                "date": day,
                "events": events.get(day, 0),
                "users": len(users.get(day, ())),
            })
        return stats
