"""User profile service."""

from logging import getLogger

from chyrp.clients.protocols import Document, DocumentStoreProtocol, DocumentTransactionProtocol
from chyrp.configs import TTL_ENTITY, TTL_LIST, USERS_COLLECTION, TransactionConfig, file_logger
from chyrp.db import run_transaction
from chyrp.errors import UserNotFoundError
from chyrp.managers.cache_manager import CacheManager
from chyrp.schemas.user import UserProfile, UserProfileUpdate, UserRole
from chyrp.utils import CacheKeys, CacheTags

logger = file_logger(getLogger(__name__))


class UserService:
    """
    Service for user profiles keyed by identity-provider uid.

    The first profile ever created is made an Admin; later ones start as
    Authors.
    """

    def __init__(
        self,
        store: DocumentStoreProtocol,
        cache: CacheManager,
        config: TransactionConfig | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.config = config

    async def _invalidate(self, uid: str) -> None:
        await self.cache.delete(CacheKeys.user_by_id(uid))
        await self.cache.clear_by_tags({CacheTags.USERS})

    async def _merge(self, uid: str, fields: Document) -> UserProfile:
        async def body(tx: DocumentTransactionProtocol) -> Document:
            doc = await tx.get(USERS_COLLECTION, uid)
            if doc is None:
                raise UserNotFoundError(uid)
            tx.update(USERS_COLLECTION, uid, fields)
            return {**doc, **fields}

        doc = await run_transaction(self.store, body, self.config, name=f"profile update for {uid}")
        await self._invalidate(uid)
        return UserProfile.model_validate(doc)

    async def create_profile(
        self,
        uid: str,
        email: str,
        display_name: str,
        photo_url: str | None = None,
    ) -> UserProfile:
        """
        Create a profile on first sign-in.

        An existing profile is returned unchanged.
        """
        existing = await self.store.get_document(USERS_COLLECTION, uid)
        if existing is not None:
            return UserProfile.model_validate(existing)

        is_first = not await self.store.list_documents(USERS_COLLECTION)
        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=display_name,
            photo_url=photo_url,
            role="Admin" if is_first else "Author",
        )
        await self.store.set_document(USERS_COLLECTION, uid, profile.model_dump(mode="json"))
        await self._invalidate(uid)
        logger.info(f"Profile {uid} created with role {profile.role}")
        return profile

    async def get_profile(self, uid: str) -> UserProfile:
        """
        Get a profile by uid.

        Raises:
            UserNotFoundError: No profile exists for the uid.
        """

        async def fetch() -> Document:
            doc = await self.store.get_document(USERS_COLLECTION, uid)
            if doc is None:
                raise UserNotFoundError(uid)
            return doc

        doc = await self.cache.get_or_set(
            CacheKeys.user_by_id(uid),
            fetch,
            ttl=TTL_ENTITY,
            tags={CacheTags.USERS},
        )
        return UserProfile.model_validate(doc)

    async def list_users(self) -> list[UserProfile]:
        """All profiles sorted by display name."""

        async def fetch() -> list[Document]:
            rows = await self.store.list_documents(USERS_COLLECTION)
            return sorted((doc for _, doc in rows), key=lambda doc: doc["display_name"].lower())

        docs = await self.cache.get_or_set(
            CacheKeys.users_all(),
            fetch,
            ttl=TTL_LIST,
            tags={CacheTags.USERS},
        )
        return [UserProfile.model_validate(doc) for doc in docs]

    async def update_role(self, uid: str, role: UserRole) -> UserProfile:
        """Change a user's role."""
        profile = await self._merge(uid, {"role": role})
        logger.info(f"User {uid} role changed to {role}")
        return profile

    async def update_profile(self, uid: str, payload: UserProfileUpdate) -> UserProfile:
        """Merge editable profile fields."""
        fields = payload.model_dump(exclude_unset=True)
        if not fields:
            return await self.get_profile(uid)
        return await self._merge(uid, fields)
