class QuantDashError(Exception):
    pass


class ConfigError(QuantDashError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"Configuration error: {self.message}"


class DataFetchError(QuantDashError):
    def __init__(self, message: str, source: str, url: str = "") -> None:
        self.message = message
        self.source = source
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        url_info = f" from {self.url}" if self.url else ""
        return f"Failed to fetch data from {self.source}{url_info}: {self.message}"


class BacktestNotFoundError(QuantDashError):
    def __init__(self, backtest_id: str) -> None:
        self.backtest_id = backtest_id
        super().__init__(f"Backtest not found: {backtest_id}")

    def __str__(self) -> str:
        return f"Backtest {self.backtest_id} not found"


class DataFileError(QuantDashError):
    def __init__(self, message: str, path: str = "") -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        path_info = f" '{self.path}'" if self.path else ""
        return f"Data file error{path_info}: {self.message}"
