"""wishlist-cache - build the OSS wishlist cache from GitHub issue forms.

High-level public API:

from wishlistcache import load_config, generate_cache, GitHubRestClient

cfg = load_config('wishlist_cache.config.yaml')
client = GitHubRestClient(token=os.environ['GITHUB_TOKEN'], repo=cfg.github_repo)
result = generate_cache(cfg, client)
print(result.stats.total)

The CLI (``wishlist-cache generate``) wraps exactly this call.
"""

from __future__ import annotations

# Defined before the submodule imports below; github_rest reads it for the user agent.
__version__ = "3.0.0"

from .builder import build_record, derive_wishlist_id  # noqa: E402
from .config import CacheConfig, ConfigError, load_config  # noqa: E402
from .github_rest import GitHubAPIError, GitHubRestClient  # noqa: E402
from .models import WishlistRecord  # noqa: E402
from .orchestrator import RunSummary, generate_cache  # noqa: E402
from .parser import extract_section  # noqa: E402

__all__ = [
    "CacheConfig",
    "ConfigError",
    "GitHubAPIError",
    "GitHubRestClient",
    "RunSummary",
    "WishlistRecord",
    "build_record",
    "derive_wishlist_id",
    "extract_section",
    "generate_cache",
    "load_config",
    "__version__",
]
