"""Platform adapters that reconcile hosted clusters onto machine-provisioning backends."""

__version__ = "0.1.0"
