"""Integrations with the CMS, the remote index and in-process schedulers."""
