"""
Remediation layer: reboot impaired EC2 instances in one region via boto3.
"""

from winstance_slayer.remediation.ec2_remediator import make_ec2_client, remediate_region

__all__ = ["make_ec2_client", "remediate_region"]
