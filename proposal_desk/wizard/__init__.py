"""Proposal builder wizard - state machine, steps and notifications."""

from proposal_desk.wizard.controller import NavigationFooter, WizardController
from proposal_desk.wizard.notifications import Notification, NotificationLevel, Notifier
from proposal_desk.wizard.steps import STEPS, STEP_VALIDATORS, StepView, step_indicator

__all__ = [
    "NavigationFooter",
    "WizardController",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "STEPS",
    "STEP_VALIDATORS",
    "StepView",
    "step_indicator",
]
