"""
Error taxonomy for the suitability pipeline
===========================================
Every error names the pipeline stage and the layer it failed on, so a
batch run can terminate with a message that says exactly where it stopped.
"""


class SuitabilityError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(self, message, layer=None, stage=None):
        if stage is not None:
            self.stage = stage
        self.layer = layer
        self.message = message
        super().__init__(self._format())

    def _format(self):
        where = f"[{self.stage}]"
        if self.layer:
            where += f" layer '{self.layer}'"
        return f"{where}: {self.message}"


class InputDataError(SuitabilityError):
    """Input files are missing, unreadable or structurally invalid."""

    stage = "load"


class AlignmentError(SuitabilityError):
    """CRS undefined, or reprojection leaves no overlap with the reference grid."""

    stage = "alignment"


class InvalidRangeError(SuitabilityError):
    """A tolerance band with min > max (or a NaN bound)."""

    stage = "reclassify"


class GridMismatchError(SuitabilityError):
    """Rasters that must share one grid do not."""

    stage = "combine"


class DivisionUndefined(SuitabilityError):
    """Percentage requested against a zero or missing reference area."""

    stage = "zonal"
