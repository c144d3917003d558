"""
Utils package initialization.

Config tidak di-import di sini: class body-nya membaca environment
variables, jadi hanya di-load saat benar-benar dipakai
(quorumlock.utils.config).
"""

from .metrics import metrics, measure_time

__all__ = ['metrics', 'measure_time']
