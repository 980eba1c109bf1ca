from procrun.domain.errors import ProcrunError


class AdapterError(ProcrunError):
    pass


class RequestFileError(AdapterError):
    pass
