"""
Salary Compare: access-controlled comparison of encrypted salaries.

Participants register an encrypted salary and request pairwise
"is my salary greater than theirs?" comparisons:
1. Values: one encrypted value per participant, replaced on update
2. Comparisons: one encrypted boolean per ordered pair, never recomputed

Cleartext is only ever disclosed by the homomorphic engine,
and only to principals holding an explicit grant.
"""

__version__ = "0.1.0"
