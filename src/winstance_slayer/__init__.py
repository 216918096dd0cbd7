"""
winstance-slayer: reboots EC2 instances stuck in an impaired status check.

Scans a fixed set of regions, keeps instances impaired for longer than a
threshold whose Owner and Name tags match, and reboots them.
"""

__version__ = "0.1.0"
