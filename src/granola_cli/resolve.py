"""Source selection: API, local cache, or API with cache fallback."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from . import cache
from .api import ApiClient, list_from_api
from .auth import extract_access_token
from .config import Config
from .errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialsError,
    NotFoundError,
)
from .filters import find_folder, resolve_meeting_id
from .types import (
    CacheState,
    Folder,
    ListOptions,
    Meeting,
    MeetingDetail,
    Person,
    Workspace,
)

T = TypeVar("T")

RESOLVE_WINDOW = 200


async def _or_none(fetch: Awaitable[T]) -> T | None:
    try:
        return await fetch
    except Exception:
        return None


class SourceMode(str, Enum):
    AUTO = "auto"
    API = "api"
    CACHE = "cache"

    @classmethod
    def parse(cls, value: str | None, no_network: bool = False) -> "SourceMode":
        """Turn the ``--source`` / ``--no-network`` flags into a mode."""
        if no_network:
            return cls.CACHE
        try:
            return cls(value or cls.AUTO.value)
        except ValueError:
            raise ConfigurationError(f"Invalid source mode: {value}") from None


class Resolver:
    """Answers queries from the source(s) the mode allows.

    ``client`` is ``None`` when the network is off or, in auto mode, when
    no token could be read; queries then go straight to the cache.  The
    cache is loaded at most once, on first use.
    """

    def __init__(
        self,
        mode: SourceMode,
        client: ApiClient | None,
        load_state: Callable[[], CacheState],
        page_size: int = 100,
    ):
        if mode is SourceMode.CACHE:
            client = None
        elif mode is SourceMode.API and client is None:
            raise AuthenticationError(
                "Authentication required. Could not read Granola token."
            )
        self.mode = mode
        self.client = client
        self.page_size = page_size
        self._load_state = load_state
        self._state: CacheState | None = None

    @classmethod
    def from_config(cls, config: Config, mode: SourceMode) -> "Resolver":
        """Build a resolver, reading the access token unless offline.

        A missing token only matters in api mode; auto mode quietly uses
        the cache instead.
        """
        client = None
        if mode is not SourceMode.CACHE:
            try:
                token = extract_access_token(config.credentials_path)
            except CredentialsError:
                if mode is SourceMode.API:
                    raise AuthenticationError(
                        "Authentication required. Could not read Granola token."
                    ) from None
            else:
                client = ApiClient(token, config.api_base, config.timeout)
        return cls(
            mode,
            client,
            lambda: cache.load_cache(config.cache_path),
            page_size=config.page_size,
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    @property
    def state(self) -> CacheState:
        if self._state is None:
            self._state = self._load_state()
        return self._state

    async def _fetch(
        self,
        remote: Callable[[ApiClient], Awaitable[T]],
        local: Callable[[CacheState], T],
    ) -> T:
        if self.client is None:
            return local(self.state)
        if self.mode is SourceMode.API:
            return await remote(self.client)
        try:
            return await remote(self.client)
        except Exception:
            return local(self.state)

    def require_client(self) -> ApiClient:
        """Client for network-only operations such as sync."""
        if self.mode is SourceMode.CACHE:
            raise ConfigurationError("Network disabled. Use --source api to sync.")
        if self.client is None:
            raise AuthenticationError(
                "Authentication required. Could not read Granola token."
            )
        return self.client

    # ------------------------------------------------------------------
    # Meetings
    # ------------------------------------------------------------------

    async def list_meetings(self, options: ListOptions | None = None) -> list[Meeting]:
        options = options or ListOptions()
        return await self._fetch(
            lambda c: list_from_api(c, options, self.page_size),
            lambda s: cache.list_from_cache(s, options),
        )

    async def resolve_meeting_id(self, query: str) -> str:
        """Meeting id for an id, id prefix or title fragment.

        Raises:
            NotFoundError: nothing in the most recent meetings matches.
        """
        meetings = await self.list_meetings(ListOptions(limit=RESOLVE_WINDOW))
        meeting_id = resolve_meeting_id(meetings, query)
        if meeting_id is None:
            raise NotFoundError(f"Meeting not found for: {query}")
        return meeting_id

    async def get_meeting_detail(
        self,
        meeting_id: str,
        query: str | None = None,
        summary: bool = True,
        transcript: bool = True,
    ) -> MeetingDetail:
        """Metadata plus optional summary and transcript for one meeting.

        All parts come from the same source.  Only a failed metadata fetch
        sends the whole view to the cache; a failed summary or transcript
        fetch on the API side just leaves that part empty.
        """
        if self.client is not None:
            try:
                meeting = await self.client.get_meeting(meeting_id)
            except Exception:
                if self.mode is SourceMode.API:
                    raise
            else:
                client = self.client
                return MeetingDetail(
                    meeting=meeting,
                    summary=(
                        await _or_none(client.get_last_viewed_panel(meeting_id))
                        if summary
                        else None
                    ),
                    transcript=(
                        await _or_none(client.get_transcript(meeting_id))
                        if transcript
                        else None
                    ),
                    source=SourceMode.API.value,
                )

        state = self.state
        meeting = cache.get_meeting_by_id(state, meeting_id)
        if meeting is None:
            raise NotFoundError(f"Meeting not found for: {query or meeting_id}")
        return MeetingDetail(
            meeting=meeting,
            summary=cache.get_enhanced_panel(state, meeting_id) if summary else None,
            transcript=cache.get_transcript(state, meeting_id) if transcript else None,
            source=SourceMode.CACHE.value,
        )

    # ------------------------------------------------------------------
    # Folders, people, workspaces
    # ------------------------------------------------------------------

    async def list_folders(self) -> list[Folder]:
        return await self._fetch(lambda c: c.get_folders(), cache.get_folders)

    async def get_folder(self, id_or_name: str) -> Folder:
        folder = find_folder(await self.list_folders(), id_or_name)
        if folder is None:
            raise NotFoundError(f"Folder not found: {id_or_name}")
        return folder

    async def list_people(self, query: str | None = None) -> list[Person]:
        people = await self._fetch(lambda c: c.get_people(), cache.get_people)
        if not query:
            return people
        q = query.lower()
        return [
            p
            for p in people
            if q in (p.name or "").lower() or q in (p.email or "").lower()
        ]

    async def list_workspaces(self) -> list[Workspace]:
        return await self._fetch(lambda c: c.get_workspaces(), cache.get_workspaces)

    def list_shared(self) -> list[Meeting]:
        return cache.get_shared_meetings(self.state)
