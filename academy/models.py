"""
Academy Application Models Registry

Imports and exposes the models of the logical submodules so they are
registered with Django's ORM under the ``academy`` app label.

Architecture:
- catalog/: Courses, programs and scheduled classes
- enrollments/: Students and their class enrollments
- billing/: Transactions, payments and accounting invoice staging

Author: DSP Development Team
Version: 1.0.0
"""

# Catalog
from .catalog.models import *

# Students & enrollments
from .enrollments.models import *

# Billing ledger
from .billing.models import *
