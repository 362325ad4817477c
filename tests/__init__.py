"""
PaymentFlow Test Suite Initialization

Marks the process as a test run so settings and logging can tell.
"""

import os

os.environ["PAYMENTFLOW_TEST_MODE"] = "1"
