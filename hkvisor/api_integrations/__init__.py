from .smtp import SmtpNotifier

__all__ = ["SmtpNotifier"]
