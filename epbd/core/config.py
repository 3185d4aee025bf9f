from dataclasses import dataclass
from typing import Optional

from epbd.conventions import LoadMatching

# Reference electrical efficiency used to derive the factors of cogenerated electricity.
COGEN_ETA_EL_REF = 0.44


@dataclass(frozen=True)
class BalanceConfig:
    """Options of an energy balance computation.

    Args:
        k_exp: Weight of the credit for exported energy in step B, in [0, 1].
        load_matching: How the load matching factor of produced electricity is obtained.
        f_match: Constant load matching factor, used with `LoadMatching.CONSTANT`.
        k_match: Exponent of the statistical load matching function.
        reference_area: Reference floor area in m² to normalize the balance.
        cogen_eta_el: Reference electrical efficiency of cogeneration.
    """

    k_exp: float = 0.0
    load_matching: LoadMatching = LoadMatching.CONSTANT
    f_match: float = 1.0
    k_match: float = 2.0
    reference_area: Optional[float] = None
    cogen_eta_el: float = COGEN_ETA_EL_REF

    def __post_init__(self):
        object.__setattr__(self, "load_matching", LoadMatching(self.load_matching))
        assert 0.0 <= self.k_exp <= 1.0, f"k_exp must be in [0, 1], got {self.k_exp}."
        assert 0.0 <= self.f_match <= 1.0, f"f_match must be in [0, 1], got {self.f_match}."
        assert self.k_match > 0, f"k_match must be positive, got {self.k_match}."
        assert self.cogen_eta_el > 0, f"cogen_eta_el must be positive, got {self.cogen_eta_el}."
        if self.reference_area is not None:
            assert self.reference_area > 0, (
                f"reference_area must be positive, got {self.reference_area}."
            )
