# %% [markdown]
# # pixwarp: Example usage

# %%
# !pip install -q mediapy pixwarp

# %%
"""Simple examples of `pixwarp` usage."""

import collections
import math

import mediapy as media
import numpy as np
import matplotlib.pyplot as plt

import pixwarp

# %%
image = media.read_image('https://github.com/hhoppe/data/raw/main/image.png')
image = pixwarp.clone(image)  # As uint8 RGBA.
height, width = image.shape[:2]

# %% [markdown]
# ### Downsample and upsample with `'extent'`

# %%
downsampled = pixwarp.transform(image, width // 4, height // 4, 'extent', [0, 0, width, height])
upsampled = pixwarp.transform(image, width * 2, height * 2, 'extent', [32, 32, 64, 64],
                              filter='lanczos3')
media.show_images({'original': image, 'downsampled': downsampled, 'crop upsampled': upsampled},
                  height=height)

# %% [markdown]
# ### Compare the filters on a magnified crop

# %%
images = {}
for filter in pixwarp.FILTERS:
  images[f"filter='{filter}'"] = pixwarp.transform(
      image, 128, 128, 'affine', [1 / 8, 0, 40, 0, 1 / 8, 40], filter=filter)
media.show_images(images, columns=4)

# %% [markdown]
# ### Weight tables
#
# Each destination sample is a normalized blend of the source samples under the filter kernel,
# which is widened by the scale factor when minifying:

# %%
_, axs = plt.subplots(1, 2, figsize=(9, 2.5))
for ax, scale in zip(axs, [0.5, 3.0]):
  table = pixwarp.create_weight_table(round(12 / scale), 12, scale, 'cubic')
  matrix = table.to_sparse().toarray()
  ax.imshow(matrix, cmap='RdBu', vmin=-1, vmax=1)
  ax.set(title=f'scale={scale}, radius={table.radius}', xlabel='source', ylabel='destination')

# %% [markdown]
# ### Rotate an image

# %%
videos = collections.defaultdict(list)
for filter in ['impulse', 'triangle', 'lanczos3']:
  for angle in np.sin(np.linspace(0.0, math.tau, 60, endpoint=False)) * math.radians(6):
    params = pixwarp.affine_rotation_about_center(image.shape[:2], angle)
    videos[f"filter='{filter}'"].append(
        pixwarp.transform(image, width, height, 'affine', params, filter=filter,
                          fill_color=(255, 255, 255)))

media.show_videos(videos, fps=20, height=height * 2)

# %% [markdown]
# ### Quad versus perspective
#
# A `'quad'` map interpolates its corners bilinearly, so straight lines bend;
# a `'perspective'` map through the same corners keeps them straight:

# %%
corners = [20, 10, 0, height, width, height - 10, width - 30, 0]
quad = pixwarp.transform(image, width, height, 'quad', corners)
perspective = pixwarp.transform(image, width, height, 'perspective',
                                pixwarp.perspective_coefficients(width, height, corners))
media.show_images({'quad': quad, 'perspective': perspective}, height=height * 2)

# %% [markdown]
# ### Mesh warp
#
# Each cell of a coarse grid over the destination has its own quad in the source:

# %%
cells = 4
rng = np.random.default_rng(0)
grid = np.moveaxis(np.indices((cells + 1, cells + 1)), 0, -1)[..., ::-1] * (width / cells)
grid[1:-1, 1:-1] += rng.normal(scale=width / cells / 6, size=(cells - 1, cells - 1, 2))
mesh = []
step = width // cells
for j, i in np.ndindex(cells, cells):
  region = (i * step, j * step, (i + 1) * step, (j + 1) * step)
  quad_corners = [grid[j, i], grid[j + 1, i], grid[j + 1, i + 1], grid[j, i + 1]]
  mesh.append((region, quad_corners))
warped = pixwarp.transform(image, width, height, 'mesh', mesh, filter='triangle')
media.show_images({'original': image, 'mesh warp': warped}, height=height * 2)

# %% [markdown]
# ### Premultiplied alpha
#
# Blending an opaque pixel with a transparent one keeps the opaque color:

# %%
pair = np.array([[[255, 0, 0, 255], [0, 255, 0, 0]]], np.uint8)
print(pixwarp.transform(pair, 1, 1, 'extent', [0, 0, 2, 1]))

# %% [markdown]
# ### Serial versus threaded rows

# %%
params = pixwarp.affine_rotation_about_center(image.shape[:2], 0.3, scale=1.5)
serial = pixwarp.transform(image, width, height, 'affine', params, filter='lanczos3',
                           executor='serial')
threaded = pixwarp.transform(image, width, height, 'affine', params, filter='lanczos3',
                             executor=pixwarp.ThreadRowExecutor(num_workers=4))
assert np.all(serial == threaded)
