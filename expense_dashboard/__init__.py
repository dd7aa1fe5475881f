"""Top‑level package for the construction expense dashboard.

The primary modules are:

* ``filtering`` – narrows the in-memory expense list with filter criteria
* ``aggregation`` – summary statistics, category breakdowns and chart data
* ``search`` – typed quick-search suggestions
* ``export`` – CSV and PDF export of an expense selection
* ``db`` – the SQLite record store
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run expense_dashboard/Home.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import export  # noqa: F401  # re-exported for convenience
from . import filtering  # noqa: F401  # re-exported for convenience
from . import search  # noqa: F401  # re-exported for convenience

__all__ = ["aggregation", "export", "filtering", "search"]
