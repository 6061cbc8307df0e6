class BatchSummary:
    """Outcome of one scheduled run: per-item successes and isolated failures."""

    def __init__(self, action):
        self.action = action  # 'purchased' or 'released'
        self.succeeded = 0
        self.failed = 0
        self.errors = []

    def add_success(self):
        self.succeeded += 1

    def add_failure(self, label, exc):
        self.failed += 1
        self.errors.append(f'{label}: {exc}')

    def as_dict(self):
        return {
            'success': True,
            self.action: self.succeeded,
            'failed': self.failed,
            'errors': list(self.errors),
        }

    def __repr__(self):
        return f'BatchSummary({self.action}={self.succeeded}, failed={self.failed})'
