"""Built-in example apps shown in the gallery.

Each example already carries its spec and a single-document app, so
selecting one (or typing its URL) renders it without any model calls.
"""

from core.state import SourceFile

EXAMPLES = [
    {
        "title": "Tap Tempo Trainer",
        "url": "https://www.youtube.com/watch?v=9bZkp7q19f0",
        "spec": (
            "# Tap Tempo Trainer\n\n"
            "Learners tap along to a beat and see how close their tempo is to the\n"
            "target. A large button registers taps; the app shows the measured BPM,\n"
            "the target BPM and the difference, and resets after two seconds idle."
        ),
        "code": """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Tap Tempo Trainer</title>
<style>
  body { font-family: sans-serif; text-align: center; padding: 2rem; }
  button { font-size: 2rem; padding: 2rem 4rem; }
</style>
</head>
<body>
<h1>Tap Tempo Trainer</h1>
<p>Target: <strong id="target">113</strong> BPM</p>
<button id="tap">Tap</button>
<p>Your tempo: <strong id="bpm">-</strong> BPM <span id="diff"></span></p>
<script>
  const taps = [];
  const target = 113;
  document.getElementById('tap').onclick = () => {
    const now = performance.now();
    if (taps.length && now - taps[taps.length - 1] > 2000) taps.length = 0;
    taps.push(now);
    if (taps.length < 2) return;
    const span = (taps[taps.length - 1] - taps[0]) / (taps.length - 1);
    const bpm = Math.round(60000 / span);
    document.getElementById('bpm').textContent = bpm;
    const diff = bpm - target;
    document.getElementById('diff').textContent = diff === 0 ? '(spot on)' : '(' + (diff > 0 ? '+' : '') + diff + ')';
  };
</script>
</body>
</html>
""",
    },
    {
        "title": "Zoo Animal Sorter",
        "url": "https://www.youtube.com/watch?v=jNQXAC9IVRw",
        "spec": (
            "# Zoo Animal Sorter\n\n"
            "Learners sort animals into habitats. Each round shows one animal name;\n"
            "clicking a habitat button checks the answer, updates the score and\n"
            "moves on. After all animals the final score is shown with a restart."
        ),
        "code": """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Zoo Animal Sorter</title>
<style>
  body { font-family: sans-serif; text-align: center; padding: 2rem; }
  #habitats button { margin: 0.5rem; padding: 1rem 2rem; }
</style>
</head>
<body>
<h1>Zoo Animal Sorter</h1>
<h2 id="animal"></h2>
<div id="habitats"></div>
<p>Score: <span id="score">0</span></p>
<script>
  const animals = [
    ['Elephant', 'Savanna'], ['Penguin', 'Ice'], ['Camel', 'Desert'],
    ['Polar bear', 'Ice'], ['Zebra', 'Savanna'], ['Fennec fox', 'Desert'],
  ];
  const habitats = ['Savanna', 'Ice', 'Desert'];
  let round = 0;
  let score = 0;
  function show() {
    const el = document.getElementById('animal');
    el.textContent = round < animals.length ? animals[round][0] : 'Done! Final score: ' + score;
  }
  habitats.forEach((h) => {
    const b = document.createElement('button');
    b.textContent = h;
    b.onclick = () => {
      if (round >= animals.length) { round = 0; score = 0; }
      else { if (animals[round][1] === h) score++; round++; }
      document.getElementById('score').textContent = score;
      show();
    };
    document.getElementById('habitats').appendChild(b);
  });
  show();
</script>
</body>
</html>
""",
    },
]


def find_example(url):
    """Index of the example whose URL is exactly ``url``, or None."""
    for i, example in enumerate(EXAMPLES):
        if example["url"] == url:
            return i
    return None


def example_files(example):
    return [SourceFile(name="index.html", content=example["code"])]
