"""
Presetarr: site configuration presets with diff, apply and rollback.
"""
__version__ = "1.0.0"
