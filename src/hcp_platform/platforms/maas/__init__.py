"""MAAS (Metal as a Service) platform adapter."""
