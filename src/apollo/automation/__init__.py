from apollo.automation.scheduler import SCAN_CHANNEL, ScanCycle, ScanScheduler, is_healthy_reply

__all__ = ["SCAN_CHANNEL", "ScanCycle", "ScanScheduler", "is_healthy_reply"]
