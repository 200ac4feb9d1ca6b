"""Nexus API Client - accounts and AI generation over HTTP."""
import base64
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from nexus.errors import InsufficientCredits, NexusError, Unauthorized


@dataclass
class UserSession:
    """Logged-in user as seen by the client."""
    token: str
    user_id: str
    email: str
    username: str
    credits: int


class NexusAPI:
    """API client for the Nexus server.

    Pass `client` to reuse an existing httpx.Client (for example a FastAPI
    TestClient); otherwise one is created for `server_url`.
    """

    def __init__(
        self,
        server_url: str = "http://localhost:8000",
        client: Optional[httpx.Client] = None,
        timeout: float = 120.0,
    ):
        self.server_url = server_url.rstrip("/")
        self.session: Optional[UserSession] = None
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def credits(self) -> int:
        return self.session.credits if self.session else 0

    def _headers(self) -> dict:
        """Get request headers with auth token."""
        headers = {"Content-Type": "application/json"}
        if self.session:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        response = self._client.request(
            method,
            f"{self.server_url}{path}",
            headers=self._headers(),
            json=payload,
        )
        if response.status_code == 401:
            raise Unauthorized(self._error_message(response, "Session expired, please log in again"))
        if response.status_code in (402, 403):
            raise InsufficientCredits()
        if response.is_error:
            error = NexusError(self._error_message(response, "AI Service Error"))
            error.status_code = response.status_code
            raise error
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            return response.json().get("error") or default
        except ValueError:
            return default

    def _set_session(self, token: str, user: dict) -> UserSession:
        self.session = UserSession(
            token=token,
            user_id=user["id"],
            email=user["email"],
            username=user["username"],
            credits=user.get("credits", 0),
        )
        return self.session

    # Auth

    def register(self, email: str, password: str, username: str) -> UserSession:
        data = self._request("POST", "/api/auth/register", {
            "email": email, "password": password, "username": username,
        })
        return self._set_session(data["token"], data["user"])

    def login(self, email: str, password: str) -> UserSession:
        data = self._request("POST", "/api/auth/login", {"email": email, "password": password})
        return self._set_session(data["token"], data["user"])

    def login_with_token(self, token: str) -> UserSession:
        """Restore a saved session; raises Unauthorized if it has expired."""
        self.session = UserSession(token=token, user_id="", email="", username="", credits=0)
        try:
            return self.refresh()
        except Unauthorized:
            self.session = None
            raise

    def refresh(self) -> UserSession:
        """Reload the profile (and credit balance) from the server."""
        if not self.session:
            raise Unauthorized("Please log in first")
        data = self._request("GET", "/api/auth/me")
        return self._set_session(self.session.token, data["user"])

    def update_profile(self, username: Optional[str] = None, password: Optional[str] = None) -> UserSession:
        payload = {}
        if username:
            payload["username"] = username
        if password:
            payload["password"] = password
        data = self._request("POST", "/api/auth/update", payload)
        return self._set_session(self.session.token, data["user"])

    def logout(self) -> None:
        if self.session:
            self._request("POST", "/api/auth/logout")
        self.session = None

    # AI generation

    def _generate(self, endpoint: str, payload: dict) -> Any:
        if not self.session:
            raise Unauthorized("Please log in to use AI features")
        result = self._request("POST", f"/api/ai/{endpoint}", payload)
        self.session.credits = max(0, self.session.credits - 1)
        return result

    def analyze_audio(self, audio_data: bytes, mime_type: str = "audio/mp3") -> dict:
        return self._generate("analyze-audio", {
            "base64Audio": base64.b64encode(audio_data).decode("ascii"),
            "mimeType": mime_type,
        })

    def analyze_metadata(self, query: str) -> dict:
        return self._generate("analyze-metadata", {"query": query})

    def generate_creative(self, concept: str, selected_tags: list[str], structure_template: str) -> dict:
        return self._generate("generate-creative", {"request": {
            "concept": concept,
            "selectedTags": selected_tags,
            "structureTemplate": structure_template,
        }})

    def generate_remix(self, original_data: dict) -> dict:
        return self._generate("generate-remix", {"originalData": original_data})

    def generate_lyrics(self, genre: str, mood: list[str], section_name: str, section_desc: str) -> str:
        result = self._generate("generate-lyrics", {
            "genre": genre,
            "mood": mood,
            "sectionName": section_name,
            "sectionDesc": section_desc,
        })
        return result["text"]

    def close(self) -> None:
        self._client.close()
