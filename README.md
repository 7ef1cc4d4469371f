# ffuf

The engine of a web fuzzer, as a Python library. It does the following:

- checks a set of options and builds a run configuration from them;
- turns requests with `§` markers into concrete requests;
- decides which responses count, using the matchers and filters you supply;
- runs fuzzing jobs with threads, rate limiting, delays, auto-calibration,
  recursion, stop conditions and a history of past runs.

Python 3.11 or newer is required. The only runtime dependency is
`platformdirs`, which is used to find the user configuration directory.

The package `ffuf` itself exports nothing. Import the modules you need,
for example `ffuf.options`, `ffuf.optionsparser` and `ffuf.job`.

## What the package does not do

The package holds no code that sends HTTP requests, reads wordlists, runs
input commands, prints results or writes output files. It holds no concrete
matchers or filters either, and it has no command-line program.

You supply these parts yourself by implementing the abstract classes in
`ffuf.interfaces`:

| Class | Role |
| --- | --- |
| `RunnerProvider` | prepares, executes and dumps requests |
| `InputProvider`, `InternalInputProvider` | supply the values for each keyword |
| `OutputProvider` | shows progress, messages and results |
| `MatcherManager`, `FilterProvider` | hold and apply matchers and filters |
| `Scraper` | extracts data from responses (optional) |

## Options and configuration

```python
from ffuf.options import new_config_options
from ffuf.optionsparser import config_from_options

opts = new_config_options()
opts.http.url = "https://example.com/FUZZ"
opts.input.wordlists = ["/path/to/wordlist.txt"]
opts.general.delay = "0.1-0.5"

conf = config_from_options(opts)
```

### Defaults

`new_config_options()` returns a `ConfigOptions` holding the default values,
grouped in the sections `filter`, `general`, `http`, `input`, `matcher` and
`output`. The defaults include:

- 40 threads;
- a 10 second timeout;
- the `clusterbomb` input mode;
- `json` as the output format;
- the matcher status list `200,204,301,302,307,401,403,405,500`.

### Checking the options

`config_from_options` returns a `ffuf.config.Config`. It collects every
problem it finds and raises them together as a single
`ffuf.multierror.AggregateError`. It checks for:

- a missing URL or raw request file;
- missing wordlists or input commands;
- an unknown input mode, filter mode or matcher mode;
- an unknown output format;
- a malformed delay;
- a proxy or replay-proxy URL that is not `http`, `https` or `socks5`
  (the replay proxy also accepts `socks5h`);
- headers without a value;
- keywords, or `§` markers in pairs, that appear nowhere in the request;
- the `FUZZ` keyword used in sniper mode;
- a recursion URL that does not end in `FUZZ`;
- `-json` combined with `-v`.

### Normalising the options

While building the configuration, `config_from_options` also adjusts some
values:

- Wordlist paths become absolute.
- Header names are canonicalised, unless they contain a keyword.
- Cookies become a `Cookie` header.
- Setting POST data implies the POST method. This does not happen when a
  raw request file is used.
- Setting `input.request` makes `parse_raw_request` read the method,
  headers, URL and body from a raw HTTP request file.

### The matcher manager

The returned `Config` has `matcher_manager` set to `None`. Assign your own
`MatcherManager` before you run a job.

### Reading options from files

`ffuf.options.read_config(path)` reads a TOML file over the defaults.

`ffuf.options.read_default_config()` reads `ffufrc` from the user
configuration directory. If that file is not there, it reads `~/.ffufrc`
instead.

`Config.to_options()` goes the other way: it turns a configuration back
into options.

## Templated requests (sniper mode)

In sniper mode, positions in the request are marked with pairs of `§`.
`sniper_requests` returns one request per marked position. In each one,
that position is replaced by `FUZZ` and all other markers are removed.

```python
from ffuf.request import Request, sniper_requests

req = Request(
    method="POST",
    url="https://example.com/item?id=§1§",
    headers={"X-Trace": "§abc§"},
    data=b"name=§bob§",
)
for r in sniper_requests(req, "§"):
    print(r.url, r.headers, r.data)
```

`ffuf.request` also provides these helpers:

| Function | What it does |
| --- | --- |
| `template_locations` | finds the marker offsets in a string |
| `inject_keyword` | replaces the text between two offsets with a keyword |
| `scrub_templates` | removes the markers from a request in place |
| `base_request` | builds the starting request from a `Config` |
| `recursion_request` | builds the starting request for a recursion URL |
| `copy_request` | makes a deep copy of a request |

## Running a job

```python
from ffuf.job import Job

conf.matcher_manager = my_matcher_manager
job = Job(conf, input=my_input, runner=my_runner, output=my_output)
job.start()
```

`Job` also takes the optional arguments `replay_runner` and `scraper`.

`start()` processes every queued job in turn. For each input it sends a
request in a worker thread and keeps to `threads` and `rate`. It then
checks the response with `is_match()`. Matching responses go to
`output.result()`. Matching requests are also sent again through the
replay runner, if one is given.

### Recursion

- With the `default` strategy, a redirect to the same URL with a trailing
  `/` queues a new `…/FUZZ` job.
- With the `greedy` strategy, every match queues a new job.

Both strategies respect `recursion_depth`.

### Auto-calibration

When `autocalibration` is enabled, the job sends requests for random
strings before the real ones. It then adds a `size`, `word` or `line`
filter for the value those responses share. With `autocalibration_per_host`
this is done separately for each host.

### Stopping and control

`check_stop()` stops the run in these cases:

- more than 95% of responses are 403 (`stop_on_403`);
- there are too many spurious errors (`stop_on_errors`);
- more than 20% of responses are 429 (`stop_on_all`);
- `max_time` has been reached.

If `max_time_job` is reached, only the current job ends and the run moves
on to the next one.

While a job runs, you can call `pause()`, `resume()`, `skip_queue()`,
`next()` and `stop()`. `queued_jobs()` lists the current and pending jobs,
and `delete_queue_item()` removes one of them.

## History

Before each job starts, its options are written to the history directory,
`ffuf.util.HISTORY_DIR`, in a subdirectory named by the SHA-256 hash of
those options.

Every request carries an `FFUFHASH` input. Its value is the first five
characters of that hash followed by the input position in hexadecimal.

- `ffuf.history.search_hash(value)` returns the matching history entries
  and the position.
- `history_replayable(conf)` tells you whether the job can be rebuilt. A
  job whose wordlist was read from stdin cannot.

## Smaller pieces

- `ffuf.valuerange.value_range_from_string` parses `"42"` or `"100-200"`
  into a `ValueRange`. It raises `ValueError` for bad input.
- `ffuf.optrange.OptRange` holds a delay, which is a single float or a
  range. It has `initialize`, `to_json` and `load_json`.
- `ffuf.rate.RateThrottle` paces requests with `wait()`, records
  completions with `tick()` and reports `current_rate()`.
- `ffuf.multierror.Multierror` collects errors. It has `error_or_none()`
  and `raise_for_errors()`.
- `ffuf.response.Response.get_redirect_location` returns the `Location` of
  a 3xx response, optionally resolved against the request URL.
- `ffuf.util` provides these helpers:
  - `random_string`
  - `uniq_string_slice`
  - `file_exists`
  - `request_contains_keyword`
  - `host_url_from_request`
  - `version`
  - `check_or_create_config_dir`