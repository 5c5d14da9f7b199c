"""Control Tower Landing Zone - Main Package.

This package assembles an AWS Control Tower landing zone, its shared
accounts, service roles and KMS key into a dependency-ordered resource
graph and renders it as a CloudFormation template.
"""

__version__ = "1.0.0"
__author__ = "AWS Control Tower Automation Team"
