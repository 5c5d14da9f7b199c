"""Control Tower prerequisites.

Resolvers for the organization, shared accounts, IAM service roles and
KMS key that a landing zone needs before it can be created.
"""
