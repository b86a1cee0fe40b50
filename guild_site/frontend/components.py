"""
Server-rendered page components

Each component is a small object rendered through the Jinja2 environment
its caller passes in. Only CookieConsent holds state, and that state lives
in the storage mapping it is given.
"""

from pathlib import Path
from typing import Any, Callable, List, MutableMapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.constants import DEFAULT_FOOTER_EMBLEM, SOCIAL_LINKS
from .class_colors import get_class_color, get_class_icon_url

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

COOKIE_CONSENT_KEY = "cookie-consent"
COOKIE_CONSENT_ACCEPTED = "accepted"

GUILD_LOGO_URL = "/static/guild-logo.svg"
GUILD_LOGO_SIZES = {
    "sm": "h-8 w-auto",
    "md": "h-12 w-auto",
    "lg": "h-20 w-auto",
    "xl": "h-28 w-auto",
}

CODE_CLASSES = "p-3 rounded-md text-sm font-mono overflow-auto bg-slate-950 text-slate-50"

# Fixed paths, never built from user input
AUTH_TEST_TARGETS = (
    ("auth.apiTest", "API Auth Test", "/api/auth/login"),
    ("auth.phpTest", "PHP Auth Test", "/auth-bnet-direct.php"),
)

Translator = Callable[..., str]


def _passthrough(key: str, default: Optional[str] = None, **values) -> str:
    return default if default is not None else key


def create_template_environment(directory: Path = TEMPLATES_DIR) -> Environment:
    """Jinja2 environment shared by components and page routes"""
    env = Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.globals.update(
        class_color=get_class_color,
        class_icon_url=get_class_icon_url,
    )
    return env


def _field(obj: Any, name: str, camel: Optional[str] = None, default: Any = None) -> Any:
    """Read a value from an ORM object, schema or JSON dict"""
    if obj is None:
        return default
    if isinstance(obj, dict):
        if name in obj:
            return obj[name]
        return obj.get(camel, default) if camel else default
    return getattr(obj, name, default)


class Component:
    template_name: str = ""

    def __init__(self, *, env: Environment, t: Optional[Translator] = None):
        self.t = t or _passthrough
        self.env = env

    def context(self) -> dict:
        return {}

    def render(self) -> str:
        template = self.env.get_template(self.template_name)
        return template.render(t=self.t, **self.context())


class CookieConsent(Component):
    """Consent banner shown until the visitor accepts"""
    template_name = "components/cookie_consent.html"

    def __init__(self, storage: MutableMapping[str, str], **kwargs):
        super().__init__(**kwargs)
        self.storage = storage
        self.visible = False

    def mount(self) -> "CookieConsent":
        self.visible = not self.storage.get(COOKIE_CONSENT_KEY)
        return self

    def accept(self):
        self.storage[COOKIE_CONSENT_KEY] = COOKIE_CONSENT_ACCEPTED
        self.visible = False

    def render(self) -> str:
        if not self.visible:
            return ""
        return super().render()


class GuildStats(Component):
    """Server, member count and current progress tiles"""
    template_name = "components/guild_stats.html"

    def __init__(self, guild: Any, current_progress: Any = None, **kwargs):
        super().__init__(**kwargs)
        self.guild = guild
        self.current_progress = current_progress

    @property
    def progress_string(self) -> str:
        progress = self.current_progress
        if progress is None:
            return "Loading..."
        difficulty = str(_field(progress, "difficulty", default=""))
        return (
            f"{_field(progress, 'bosses_defeated', 'bossesDefeated')}/{_field(progress, 'bosses')} "
            f"{difficulty[:1].upper() + difficulty[1:]} {_field(progress, 'name')}"
        )

    def context(self) -> dict:
        return {
            "realm": _field(self.guild, "realm") or "Loading...",
            "member_count": _field(self.guild, "member_count", "memberCount", 0),
            "progress_string": self.progress_string,
        }


class Footer(Component):
    template_name = "components/footer.html"

    def __init__(self, guild_name: str, emblem_url: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.guild_name = guild_name
        self.emblem_url = emblem_url or DEFAULT_FOOTER_EMBLEM

    def context(self) -> dict:
        return {
            "guild_name": self.guild_name,
            "emblem_url": self.emblem_url,
            "social_links": SOCIAL_LINKS,
        }


class GuildLogo(Component):
    template_name = "components/guild_logo.html"

    def __init__(self, size: str = "md", class_name: str = "", alt: str = "Guttakrutt", **kwargs):
        super().__init__(**kwargs)
        if size not in GUILD_LOGO_SIZES:
            raise ValueError(f"Unknown logo size '{size}', expected one of {', '.join(GUILD_LOGO_SIZES)}")
        self.size = size
        self.class_name = class_name
        self.alt = alt

    @property
    def css_class(self) -> str:
        return f"{GUILD_LOGO_SIZES[self.size]} {self.class_name}".strip()

    def context(self) -> dict:
        return {"src": GUILD_LOGO_URL, "alt": self.alt, "css_class": self.css_class}


class Code(Component):
    """Escaped code block"""
    template_name = "components/code.html"

    def __init__(self, content: str, class_name: str = "", **kwargs):
        super().__init__(**kwargs)
        self.content = content
        self.class_name = class_name

    def context(self) -> dict:
        return {"content": self.content, "css_class": f"{CODE_CLASSES} {self.class_name}".strip()}


class TestAuthButton(Component):
    """Login shortcuts, rendered only in development"""
    __test__ = False  # not a pytest class
    template_name = "components/test_auth_button.html"

    def __init__(self, environment: str, **kwargs):
        super().__init__(**kwargs)
        self.environment = environment

    @property
    def enabled(self) -> bool:
        return (self.environment or "").lower() == "development"

    @property
    def targets(self) -> List[dict]:
        return [{"label_key": key, "label": label, "href": href} for key, label, href in AUTH_TEST_TARGETS]

    def context(self) -> dict:
        return {"targets": self.targets}

    def render(self) -> str:
        if not self.enabled:
            return ""
        return super().render()
