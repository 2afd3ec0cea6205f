"""termsetup — idempotent terminal environment provisioning."""

__version__ = "0.1.0"
