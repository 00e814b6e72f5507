"""poddns exception hierarchy.

Typed exceptions let callers tell configuration mistakes from cluster
failures, and let ``CancelledError`` propagate untouched.

Exception hierarchy:

```text
PodDnsError (base -- never raised directly)
├── ConfigurationError       -- bad YAML, invalid config values
└── ClusterError             -- Kubernetes API or credential failure
    ├── CacheSyncError       -- readiness barrier timed out
    └── CacheNotSyncedError  -- snapshot read before the first sync
```

See Also:
    [ClusterCache][poddns.core.cache.ClusterCache]: Raises the
        [ClusterError][poddns.core.exceptions.ClusterError] family.
    [load_yaml()][poddns.core.yaml.load_yaml]: Raises
        [ConfigurationError][poddns.core.exceptions.ConfigurationError].
    [BaseService.run_forever()][poddns.core.base_service.BaseService.run_forever]:
        Counts any cycle failure and retries on the next interval.
"""

from __future__ import annotations


class PodDnsError(Exception):
    """Base exception for all poddns errors. Never raised directly."""


class ConfigurationError(PodDnsError):
    """Invalid or unreadable configuration (YAML, CLI flags, config values)."""


class ClusterError(PodDnsError):
    """The cluster could not be read: API error, missing credentials, timeout.

    A failed pod listing surfaces as this error (or a subclass) and is fatal
    to the resolution pass that triggered it.
    """


class CacheSyncError(ClusterError):
    """The first snapshot did not arrive before the sync timeout."""


class CacheNotSyncedError(ClusterError):
    """A snapshot was requested before the cache completed its first sync."""
