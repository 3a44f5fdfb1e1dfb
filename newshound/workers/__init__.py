from .alert_worker import AlertWorker, StoredAlertError

__all__ = ['AlertWorker', 'StoredAlertError']
