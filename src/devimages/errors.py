class DevImagesError(RuntimeError):
    """Base for every error that ends a devimages run."""

    def __init__(self, msg):
        super().__init__(msg)


class ParseError(DevImagesError):
    pass


class DuplicateTargetError(DevImagesError):

    def __init__(self, target_id: str):
        super().__init__(f"Target '{target_id}' is already registered")
        self.target_id = target_id


class UnknownPrerequisiteError(DevImagesError):

    def __init__(self, target_id: str, prerequisite_id: str):
        super().__init__(
            f"Target '{target_id}' requires '{prerequisite_id}' which has not been registered"
        )
        self.target_id = target_id
        self.prerequisite_id = prerequisite_id


class UnknownTargetError(DevImagesError):

    def __init__(self, target_id: str):
        super().__init__(f"No target named '{target_id}'")
        self.target_id = target_id


class OracleUnavailableError(DevImagesError):
    pass


class BuildFailedError(DevImagesError):

    def __init__(self, target: str):
        super().__init__(f"Failed to build target '{target}'")
        self.target = target


class PullFailedError(DevImagesError):

    def __init__(self, tag: str):
        super().__init__(f"Failed to pull image '{tag}'")
        self.tag = tag


class InvalidFlagError(DevImagesError):
    pass
