from typing import Dict, Iterable


class EpbdBaseClass:
    """This class mainly provides functions for result containers."""

    def _build_repr(self, layout: str, which_metadata: Iterable) -> str:

        preface = f"<{self.__class__.__name__} object>"

        self_mapping = {k: k.capitalize() for k in which_metadata}
        header = layout.format(bullet="    ", name="Name", **self_mapping)
        header += f"{'='*80}\n"
        this_list = []

        for ent_name, metas in self._repr_rows().items():
            try:
                appender = layout.format(bullet="  ⤷ ", name=ent_name, **metas)
            except (KeyError, TypeError, ValueError):
                appender = f"  ⤷ {ent_name} ====No Metadata found====\n"
            this_list.append(appender)

        if this_list:
            data = "".join(this_list)
            return f"{preface} preview:\n{header}{data}"
        else:
            return f"{preface} (empty)"

    def _repr_rows(self) -> Dict[str, Dict]:
        """Returns a mapping of entity names to their metadata for the repr."""
        return {}

    def get_all(self) -> Dict:
        """Returns a Dict with all public attributes from this container."""
        return {k: v for k, v in self.__dict__.items() if not (k.startswith("_"))}

    def __iter__(self):
        return iter(self.get_all().values())

    def __len__(self):
        return len(self.get_all())
