"""
Models package - organized by domain
"""
from .app import App, Testimonial
from .demo_session import DemoSession
from .purchase import Purchase, PurchaseStatus, ContactSubmission
