class RegisterPageError(Exception):
    """The register page did not have the structure the parser expects."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class SearchFormNotFound(RegisterPageError):
    def __init__(self):
        super().__init__('Could not identify search form fields on SIA website.')
