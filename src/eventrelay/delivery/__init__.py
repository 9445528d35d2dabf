"""
Package: delivery
Description: Event delivery mechanisms for eventrelay.

Provides HTTP push delivery, the worker pool and dispatcher running
deliveries off the caller's thread, and the key encoding used to
persist failed events.
"""
