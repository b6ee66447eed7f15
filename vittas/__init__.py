"""
Vittas - Source Package

Finance tracking for individuals and organizations: period dashboards over
transactions and budgets, shared group expenses, and Razorpay-billed
subscriptions.

DESIGN PRINCIPLES:
1. Every request is independent - no in-process state survives a call
2. Rows from the database become validated records before use
3. Subscription changes are applied as one write
4. Every failure surfaces as a single, readable message
"""

__version__ = "1.0.0"
__author__ = "Vittas Team"
